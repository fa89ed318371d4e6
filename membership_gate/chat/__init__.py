"""
AI chat gateway metered by the quota ledger.
"""

from .models import ChatReply, ChatRequest, parse_chat_reply
from .services import ChatOutcome, ChatService

__all__ = ["ChatReply", "ChatRequest", "parse_chat_reply", "ChatOutcome", "ChatService"]
