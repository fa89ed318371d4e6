"""
Request and reply models for the AI chat gateway.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..permissions.models import SampleFlag

SCENE_START = "[SCENE_START]"


class HistoryMessage(BaseModel):
    role: str
    content: str


class VideoContext(BaseModel):
    title: str = ""
    titleCn: str = ""
    transcript: str = ""


class ChatRequest(BaseModel):
    """Body of POST /api/ai-chat."""
    message: str = ""
    mode: str = "professional"
    lessonId: str = Field(min_length=1)
    videoContext: VideoContext = Field(default_factory=VideoContext)
    conversationHistory: List[HistoryMessage] = Field(default_factory=list)
    isSample: SampleFlag = False

    @property
    def is_scene_start(self) -> bool:
        return self.message == SCENE_START


class ChatReply(BaseModel):
    reply: str
    replyCn: Optional[str] = None
    correction: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reply": self.reply,
            "replyCn": self.replyCn,
            "correction": self.correction,
        }


def clean_json_response(response: str) -> str:
    """Clean up LLM response to extract JSON content."""
    response = response.strip()
    if response.startswith('```json'):
        response = response[7:]
    if response.startswith('```'):
        response = response[3:]
    if response.endswith('```'):
        response = response[:-3]
    return response.strip()


def parse_chat_reply(raw: str) -> ChatReply:
    """Parse the completion text; a non-JSON reply is used verbatim."""
    try:
        data = json.loads(clean_json_response(raw))
        if not isinstance(data, dict):
            raise ValueError("reply is not a JSON object")
        reply = ChatReply(**data)
        if not reply.reply:
            raise ValueError("empty reply")
        return reply
    except (ValueError, ValidationError, TypeError):
        return ChatReply(reply=raw)
