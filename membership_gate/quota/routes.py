"""
Quota routes for chat usage display.
"""
from flask import Blueprint, jsonify, request

from ..errors import Reason
from ..membership.services import MembershipService
from ..permissions.models import parse_sample_flag
from .manager import QuotaLedger


def create_quota_routes(ledger: QuotaLedger, membership_service: MembershipService) -> Blueprint:
    """Create chat usage routes."""
    bp = Blueprint('quota', __name__)

    @bp.route("/api/chat-usage/<lesson_id>", methods=["GET"])
    def get_chat_usage(lesson_id):
        """Return today's chat usage for a lesson. Unlimited is reported as null."""
        identity = membership_service.resolve_identity()
        if not identity.is_authenticated:
            return jsonify({"success": False, "error": Reason.UNAUTHENTICATED.value}), 401

        sample_flag = parse_sample_flag(request.args.get("sample", ""))
        usage = ledger.get_usage(identity.user_id, lesson_id, identity.effective_tier, sample_flag)
        return jsonify({"success": True, "data": usage.to_dict()})

    return bp
