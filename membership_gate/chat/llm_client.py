"""
Chat completion client with support for DeepSeek, Ollama and
OpenAI-compatible providers.
"""

import logging
import re
from typing import List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_deepseek import ChatDeepSeek
from langchain_deepseek.chat_models import DEFAULT_API_BASE as DEEPSEEK_DEFAULT_API_BASE
from langchain_ollama import OllamaLLM
from langchain_openai import ChatOpenAI

from ..errors import NotConfiguredError
from .models import ChatReply, ChatRequest, parse_chat_reply
from .prompts import TEMPERATURES, build_system_prompt, normalize_mode

logger = logging.getLogger(__name__)

DEFAULT_LLM_PROVIDER = "deepseek"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "qwen3:8b"
DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"
MODEL_NAME = "deepseek-chat"


class ChatCompletionClient:
    """LLM provider configuration and chat completion."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider: str = DEFAULT_LLM_PROVIDER,
        model: Optional[str] = None,
        max_tokens: int = 300,
        temperature: float = 0.7,
        timeout: int = 60,
        max_retries: int = 1,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.provider = (provider or DEFAULT_LLM_PROVIDER).lower()
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries

        self._configure_provider()

    def _configure_provider(self):
        """Configure provider-specific defaults."""
        if self.provider == "ollama":
            self.base_url = self.base_url or DEFAULT_OLLAMA_BASE_URL
            self.model = self.model or DEFAULT_OLLAMA_MODEL
        elif self.provider == "openai":
            self.base_url = self.base_url or "https://api.openai.com/v1"
            self.model = self.model or DEFAULT_OPENAI_MODEL
        else:
            self.provider = "deepseek"
            self.model = self.model or MODEL_NAME

    def get_llm(self, temperature: float):
        """Get the configured LLM instance."""
        if self.provider == "ollama":
            logger.debug(f"Using Ollama provider: {self.model} at {self.base_url}")
            return OllamaLLM(
                model=self.model,
                base_url=self.base_url,
                temperature=temperature,
                format="json",
            )

        if not self.api_key:
            raise NotConfiguredError(f"{self.provider} API key required for AI chat")

        if self.provider == "openai":
            logger.debug(f"Using OpenAI-compatible provider: {self.model} at {self.base_url}")
            return ChatOpenAI(
                model=self.model,
                api_key=self.api_key,
                base_url=self.base_url,
                max_tokens=self.max_tokens,
                temperature=temperature,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )

        logger.debug(f"Using DeepSeek provider: {self.model}")
        return ChatDeepSeek(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=temperature,
            timeout=self.timeout,
            max_retries=self.max_retries,
            api_key=self.api_key,
            api_base=self.base_url or DEEPSEEK_DEFAULT_API_BASE,
        )

    def invoke(self, messages: List[BaseMessage], temperature: float = 0.7) -> str:
        """Invoke the LLM and return the reply text."""
        llm = self.get_llm(temperature)

        if self.provider == "ollama":
            prompt = "\n\n".join(
                f"{_speaker(m)}: {m.content}" for m in messages
            )
            response = llm.invoke(prompt)
            # Ollama may mix <think> blocks into the output
            return re.sub(r"<think>.*?</think>", "", response, flags=re.DOTALL)

        response = llm.invoke(messages)
        return response.content

    def complete(self, chat_request: ChatRequest) -> ChatReply:
        """Generate the persona's next line for a chat request."""
        mode = normalize_mode(chat_request.mode)
        context = chat_request.videoContext
        messages: List[BaseMessage] = [
            SystemMessage(content=build_system_prompt(
                mode,
                context.title,
                context.titleCn,
                context.transcript,
                chat_request.is_scene_start,
            ))
        ]
        for item in chat_request.conversationHistory:
            if item.role == "assistant":
                messages.append(AIMessage(content=item.content))
            else:
                messages.append(HumanMessage(content=item.content))
        if not chat_request.is_scene_start:
            messages.append(HumanMessage(content=chat_request.message))

        raw = self.invoke(messages, temperature=TEMPERATURES.get(mode, self.temperature))
        return parse_chat_reply(raw)


def _speaker(message: BaseMessage) -> str:
    if isinstance(message, SystemMessage):
        return "System"
    if isinstance(message, HumanMessage):
        return "User"
    return "Assistant"
