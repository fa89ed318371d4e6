"""
Permission routes for content access checks.
"""
from typing import Optional

from flask import Blueprint, jsonify, request

from ..content.catalog import LessonCatalog
from ..membership.services import MembershipService
from .evaluator import PermissionEvaluator
from .models import VideoSection, parse_sample_flag


def create_permission_routes(
    evaluator: PermissionEvaluator,
    membership_service: MembershipService,
    lesson_catalog: Optional[LessonCatalog] = None,
) -> Blueprint:
    """Create content access routes."""
    bp = Blueprint('permissions', __name__)

    def _decision_payload(tier, section, sample_flag) -> dict:
        decision = evaluator.check_access(tier, section, sample_flag)
        payload = decision.to_dict()
        payload.update({
            "tier": tier.value,
            "section": section.value,
            "showTeaser": evaluator.should_show_teaser(tier, section),
            "features": {
                feature.value: evaluator.check_feature(tier, feature, sample_flag).allowed
                for feature in evaluator.feature_floors
            },
        })
        return payload

    @bp.route("/api/access", methods=["GET"])
    def check_access():
        """Check access to a section for the caller's effective tier."""
        section = VideoSection.parse(request.args.get("section"))
        if section is None:
            return jsonify({"success": False, "error": "invalid_section"}), 400

        sample_flag = parse_sample_flag(request.args.get("sample", ""))
        identity = membership_service.resolve_identity()
        return jsonify({
            "success": True,
            "data": _decision_payload(identity.effective_tier, section, sample_flag)
        })

    @bp.route("/api/lessons/<lesson_id>/access", methods=["GET"])
    def check_lesson_access(lesson_id):
        """Check access to a lesson using its catalog category and sample flag."""
        if lesson_catalog is None:
            return jsonify({"success": False, "error": "catalog_unavailable"}), 503

        lesson = lesson_catalog.get(lesson_id)
        if lesson is None:
            return jsonify({"success": False, "error": "lesson_not_found"}), 404
        if lesson.section is None:
            return jsonify({"success": False, "error": "uncategorized_lesson"}), 400

        identity = membership_service.resolve_identity()
        payload = _decision_payload(identity.effective_tier, lesson.section, lesson.sample_flag)
        payload["lessonId"] = lesson.id
        return jsonify({"success": True, "data": payload})

    return bp
