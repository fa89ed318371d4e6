"""
Tests for the queue-based logging setup.
"""
import logging
import logging.handlers

from membership_gate.logging_config import NOISY_LOGGERS, ThreadSafeLoggingConfig


class TestThreadSafeLoggingConfig:
    """Test listener lifecycle and library silencing."""

    def setup_method(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level
        self.config = ThreadSafeLoggingConfig()

    def teardown_method(self):
        self.config.stop()
        self.root.handlers[:] = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_root_logs_through_queue(self):
        self.config.setup_logging(debug=False)

        assert self.config.is_running
        assert any(isinstance(h, logging.handlers.QueueHandler) for h in self.root.handlers)
        assert self.root.level == logging.INFO
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_debug_level(self):
        self.config.setup_logging(debug=True)

        assert self.root.level == logging.DEBUG

    def test_setup_twice_replaces_listener(self):
        self.config.setup_logging()
        self.config.setup_logging()

        queue_handlers = [h for h in self.root.handlers if isinstance(h, logging.handlers.QueueHandler)]
        assert len(queue_handlers) == 1

    def test_stop(self):
        self.config.setup_logging()
        self.config.stop()

        assert not self.config.is_running
