"""
Logging configuration for the membership gate.

Request threads log through a QueueHandler; a single QueueListener writes
the records to stdout so lines from concurrent requests never interleave.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# Third-party loggers kept at WARNING unless debugging
NOISY_LOGGERS = [
    "urllib3",
    "redis",
    "openai",
    "httpx",
    "httpcore",
    "langchain_core",
    "langchain_deepseek",
    "langchain_openai",
    "langchain_ollama",
    "werkzeug",
]


class _MuteHttpClientFilter(logging.Filter):
    """Drop per-request HTTP logs emitted by the LLM clients."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(("httpx", "httpcore")):
            return False
        msg = record.getMessage()
        return not (isinstance(msg, str) and msg.startswith(("HTTP Request:", "HTTP Response:")))


class ThreadSafeLoggingConfig:
    """Queue-based logging shared by all request threads."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None
        self._log_queue: Optional[Queue] = None

    @property
    def is_running(self) -> bool:
        return self._log_listener is not None

    def setup_logging(self, debug: bool = False) -> None:
        """
        Route the root logger through a queue and start the listener.

        Calling it again replaces the previous listener.

        Args:
            debug: Whether to enable debug logging
        """
        self.stop()

        self._log_queue = Queue()
        queue_handler = logging.handlers.QueueHandler(self._log_queue)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

        self._log_listener = logging.handlers.QueueListener(
            self._log_queue, console_handler, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(queue_handler)
        root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

        if not debug:
            self._silence_noisy_libraries(queue_handler)

    def _silence_noisy_libraries(self, handler: logging.Handler) -> None:
        handler.addFilter(_MuteHttpClientFilter())
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    def stop(self) -> None:
        """Stop the logging listener, flushing queued records."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None
        self._log_queue = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False) -> None:
    logging_config.setup_logging(debug)


def stop_logging() -> None:
    logging_config.stop()
