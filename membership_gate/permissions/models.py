"""
Data models for content permission checks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..membership.models import MembershipTier

FREE_TRIAL = "freeTrial"

# False = regular lesson, True = sample ("hook") lesson, "freeTrial" = trial lesson
SampleFlag = Union[bool, str]


class VideoSection(Enum):
    """Content categories with their own tier floor."""
    DAILY = "daily"
    COGNITIVE = "cognitive"
    BUSINESS = "business"

    @classmethod
    def parse(cls, value) -> Optional["VideoSection"]:
        if isinstance(value, cls):
            return value
        if not value or not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class Feature(Enum):
    """Per-lesson features gated by tier."""
    EXPORT_NOTES = "export_notes"
    DOWNLOAD_RAW_VIDEO = "download_raw_video"
    SWITCH_PERSONA = "switch_persona"


FEATURE_LABELS = {
    Feature.EXPORT_NOTES: "导出笔记",
    Feature.DOWNLOAD_RAW_VIDEO: "下载原始视频",
    Feature.SWITCH_PERSONA: "切换人格",
}


def parse_sample_flag(value) -> SampleFlag:
    """
    Parse a sample flag from a query string or a lesson record.

    "freeTrial" stays distinguished; "true"/"1"/True mean a sample lesson;
    anything else is a regular lesson.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text == FREE_TRIAL:
            return FREE_TRIAL
        return text.lower() in ("true", "1", "yes")
    return False


def is_free_trial(sample_flag: SampleFlag) -> bool:
    return sample_flag == FREE_TRIAL


@dataclass
class AccessDecision:
    """Result of a permission check."""
    allowed: bool
    reason: str  # "tier_ok", "sample", "unauthenticated", "tier_too_low"
    required_tier: Optional[MembershipTier] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "requiredTier": self.required_tier.value if self.required_tier else None,
        }
