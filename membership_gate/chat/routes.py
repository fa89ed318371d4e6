"""
AI chat routes.
"""
from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from ..membership.services import MembershipService
from .models import ChatRequest
from .services import ChatService


def create_chat_routes(chat_service: ChatService, membership_service: MembershipService) -> Blueprint:
    """Create AI chat routes."""
    bp = Blueprint('chat', __name__)

    @bp.route("/api/ai-chat", methods=["POST"])
    def ai_chat():
        """Run one metered chat turn for the caller."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"success": False, "error": "invalid_request"}), 400
        try:
            chat_request = ChatRequest(**data)
        except ValidationError as e:
            return jsonify({"success": False, "error": "invalid_request", "message": str(e)}), 400

        identity = membership_service.resolve_identity()
        outcome = chat_service.chat(identity, chat_request)
        return jsonify(outcome.body), outcome.status_code

    return bp
