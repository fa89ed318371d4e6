"""
AI chat gateway: identity, then quota, then completion.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..content.catalog import LessonCatalog
from ..errors import NotConfiguredError, Reason
from ..membership.models import RequestIdentity
from ..permissions.models import parse_sample_flag
from ..quota.manager import QuotaLedger
from .llm_client import ChatCompletionClient
from .models import ChatRequest, VideoContext

logger = logging.getLogger(__name__)


@dataclass
class ChatOutcome:
    """HTTP status and JSON body for one chat turn."""
    status_code: int
    body: dict = field(default_factory=dict)


class ChatService:
    """
    Runs one chat turn.

    The quota is charged before the completion call and stays charged if the
    completion fails.
    """

    def __init__(
        self,
        ledger: QuotaLedger,
        completion_client: ChatCompletionClient,
        lesson_catalog: Optional[LessonCatalog] = None,
    ):
        self.ledger = ledger
        self.completion_client = completion_client
        self.lesson_catalog = lesson_catalog

    def chat(self, identity: RequestIdentity, chat_request: ChatRequest) -> ChatOutcome:
        if not identity.is_authenticated or not identity.user_id:
            return ChatOutcome(401, {
                "success": False,
                "error": Reason.UNAUTHENTICATED.value,
                "message": "请先激活会员",
            })

        # Sample status comes from the catalog only
        sample_flag = False
        lesson = self.lesson_catalog.get(chat_request.lessonId) if self.lesson_catalog else None
        if lesson is not None:
            sample_flag = lesson.sample_flag
            if not chat_request.videoContext.transcript:
                chat_request.videoContext = VideoContext(**lesson.video_context())
        elif parse_sample_flag(chat_request.isSample):
            logger.info(f"Ignoring client sample flag for uncatalogued lesson {chat_request.lessonId}")

        tier = identity.effective_tier
        result = self.ledger.check_and_consume(identity.user_id, chat_request.lessonId, tier, sample_flag)

        if not result.allowed:
            upgrade = self.ledger.limits.upgrade_tier(tier)
            logger.info(f"Chat denied: user={identity.user_id}, lesson={chat_request.lessonId}, reason={result.reason}")
            return ChatOutcome(403, {
                "success": False,
                "error": result.reason,
                "message": result.message,
                "currentCount": result.count,
                "limit": result.limit,
                "requiredTier": upgrade.value if upgrade else None,
            })

        try:
            reply = self.completion_client.complete(chat_request)
        except NotConfiguredError:
            raise
        except Exception as e:
            logger.error(f"Chat completion failed for user={identity.user_id}: {e}")
            return ChatOutcome(502, {
                "success": False,
                "error": "completion_failed",
                "message": "服务器错误，请稍后重试",
            })

        body = {"success": True}
        body.update(reply.to_dict())
        body["remainingChats"] = result.remaining
        return ChatOutcome(200, body)
