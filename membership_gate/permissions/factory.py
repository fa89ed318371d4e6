"""
Factory for creating the permissions module.
"""
from typing import Optional

from ..content.catalog import LessonCatalog
from .evaluator import PermissionEvaluator
from .routes import create_permission_routes


def create_permissions_module(
    permissions_config,
    membership_service,
    lesson_catalog: Optional[LessonCatalog] = None,
) -> dict:
    """Create permissions module with evaluator and routes.

    Args:
        permissions_config: PermissionsConfig with section and feature floors
        membership_service: MembershipService resolving the caller's tier
        lesson_catalog: Optional lesson catalog for per-lesson checks

    Returns:
        Dictionary containing the evaluator and blueprint
    """
    evaluator = PermissionEvaluator(
        section_floors=permissions_config.section_floors,
        feature_floors=permissions_config.feature_floors,
    )

    blueprint = create_permission_routes(evaluator, membership_service, lesson_catalog)

    return {
        "evaluator": evaluator,
        "blueprint": blueprint
    }
