"""
Factory for creating the AI chat module.
"""
from typing import Optional

from ..content.catalog import LessonCatalog
from .llm_client import ChatCompletionClient
from .routes import create_chat_routes
from .services import ChatService


def create_chat_module(
    llm_config,
    ledger,
    membership_service,
    lesson_catalog: Optional[LessonCatalog] = None,
    completion_client: Optional[ChatCompletionClient] = None,
) -> dict:
    """Create chat module with service and routes.

    Args:
        llm_config: LLMConfig with provider settings
        ledger: QuotaLedger charging chat turns
        membership_service: MembershipService resolving the caller's identity
        lesson_catalog: Optional lesson catalog for sample flags and scene context
        completion_client: Optional client, replacing the configured one

    Returns:
        Dictionary containing the service and blueprint
    """
    if completion_client is None:
        completion_client = ChatCompletionClient(
            api_key=llm_config.api_key,
            base_url=llm_config.base_url,
            provider=llm_config.provider,
            model=llm_config.model,
            max_tokens=llm_config.max_tokens,
            temperature=llm_config.temperature,
        )

    chat_service = ChatService(ledger, completion_client, lesson_catalog)
    blueprint = create_chat_routes(chat_service, membership_service)

    return {
        "service": chat_service,
        "blueprint": blueprint
    }
