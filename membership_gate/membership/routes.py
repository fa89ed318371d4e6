"""
Membership routes for tier queries and logout.
"""
from flask import Blueprint, jsonify, make_response

from .services import MembershipService


def create_membership_routes(membership_service: MembershipService) -> Blueprint:
    """Create membership query routes."""
    bp = Blueprint('membership', __name__)

    @bp.route("/api/membership", methods=["GET"])
    def get_membership():
        """Return the verified membership of the caller.

        Authentication failure is reported as data with HTTP 200, never as a
        transport error.
        """
        status = membership_service.get_real_membership()
        resp = make_response(jsonify({"success": True, "data": status.to_dict()}))
        if status.clear_cookie:
            membership_service.clear_credential(resp)
        return resp

    @bp.route("/api/membership/logout", methods=["POST"])
    def logout():
        """Clear the credential cookie."""
        resp = make_response(jsonify({"success": True}))
        return membership_service.clear_credential(resp)

    return bp
