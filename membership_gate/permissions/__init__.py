"""
Section-level content permissions.
"""

from .models import VideoSection, Feature, AccessDecision, FREE_TRIAL, parse_sample_flag
from .evaluator import PermissionEvaluator

__all__ = [
    "VideoSection",
    "Feature",
    "AccessDecision",
    "FREE_TRIAL",
    "parse_sample_flag",
    "PermissionEvaluator",
]
