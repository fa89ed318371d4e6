"""
Permission evaluator for section-level content access.

Every decision is a pure function of (tier, section/feature, sample flag) and
the floor tables handed to the constructor. The tables come from configuration
so floors can be adjusted without touching this module.
"""

from typing import Dict, Mapping, Optional

from ..errors import NotConfiguredError, Reason
from ..membership.models import MembershipTier
from .models import (
    FEATURE_LABELS,
    AccessDecision,
    Feature,
    SampleFlag,
    VideoSection,
    is_free_trial,
)


def _parse_floor_table(table: Mapping[str, str], key_type, table_name: str) -> dict:
    floors = {}
    for key, tier_value in table.items():
        parsed_key = key_type(key)
        tier = MembershipTier.parse(tier_value)
        if tier is None:
            raise NotConfiguredError(f"{table_name}: unknown tier {tier_value!r} for {key!r}")
        floors[parsed_key] = tier
    return floors


class PermissionEvaluator:
    """Maps (effective tier, section, sample flag) to an access decision."""

    def __init__(
        self,
        section_floors: Mapping[str, str],
        feature_floors: Optional[Mapping[str, str]] = None,
    ):
        try:
            self.section_floors: Dict[VideoSection, MembershipTier] = _parse_floor_table(
                section_floors, VideoSection, "section_floors"
            )
            self.feature_floors: Dict[Feature, MembershipTier] = _parse_floor_table(
                feature_floors or {}, Feature, "feature_floors"
            )
        except ValueError as e:
            raise NotConfiguredError(f"Invalid permission table: {e}")

    def section_floor(self, section: VideoSection) -> MembershipTier:
        """Minimum tier for a section, failing hard when the table lacks it."""
        floor = self.section_floors.get(section)
        if floor is None:
            raise NotConfiguredError(f"No tier floor configured for section {section!r}")
        return floor

    def feature_floor(self, feature: Feature) -> MembershipTier:
        floor = self.feature_floors.get(feature)
        if floor is None:
            raise NotConfiguredError(f"No tier floor configured for feature {feature!r}")
        return floor

    def check_access(
        self,
        tier: MembershipTier,
        section: VideoSection,
        sample_flag: SampleFlag = False,
    ) -> AccessDecision:
        """
        Check whether a tier may watch content of a section.

        Sample and freeTrial content bypasses the section floor for every
        tier, visitors included.

        Args:
            tier: Effective tier of the caller
            section: Content section
            sample_flag: Per-lesson sample flag (False, True or "freeTrial")

        Returns:
            AccessDecision with allowed flag, reason and required tier
        """
        floor = self.section_floor(section)

        if sample_flag is True or is_free_trial(sample_flag):
            return AccessDecision(allowed=True, reason="sample", required_tier=floor)

        return self._decide(tier, floor)

    def check_feature(
        self,
        tier: MembershipTier,
        feature: Feature,
        sample_flag: SampleFlag = False,
    ) -> AccessDecision:
        """Check a per-lesson feature (export, raw download, persona switch).

        A trial member on a freeTrial lesson gets every feature of that lesson.
        """
        floor = self.feature_floor(feature)

        if tier == MembershipTier.TRIAL and is_free_trial(sample_flag):
            return AccessDecision(allowed=True, reason="sample", required_tier=floor)

        return self._decide(tier, floor)

    def should_show_teaser(self, tier: MembershipTier, section: VideoSection) -> bool:
        """Whether a member sees the section locked but with sample lessons open."""
        if tier == MembershipTier.VISITOR:
            return False
        return tier < self.section_floor(section)

    def upgrade_message(self, tier: MembershipTier, feature: Feature) -> str:
        """User-facing upgrade hint for a locked feature."""
        floor = self.feature_floor(feature)
        label = FEATURE_LABELS[feature]
        if tier >= floor:
            return ""
        if floor == MembershipTier.LIFETIME:
            return f"{label}仅限永久会员使用"
        return f"{label}需要{floor.label}或更高等级"

    @staticmethod
    def _decide(tier: MembershipTier, floor: MembershipTier) -> AccessDecision:
        if tier >= floor:
            return AccessDecision(allowed=True, reason="tier_ok", required_tier=floor)
        if tier == MembershipTier.VISITOR:
            return AccessDecision(
                allowed=False, reason=Reason.UNAUTHENTICATED.value, required_tier=floor
            )
        return AccessDecision(allowed=False, reason=Reason.TIER_TOO_LOW.value, required_tier=floor)
