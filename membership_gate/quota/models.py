"""
Data models for the AI chat quota ledger.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from ..errors import NotConfiguredError
from ..membership.models import MembershipTier
from ..permissions.models import SampleFlag, is_free_trial


@dataclass
class StoreResult:
    """Outcome of a counter store call.

    Callers decide the default on failure: reads fall back to zero, increments
    let the chat turn proceed.
    """
    value: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: str) -> "StoreResult":
        return cls(value=0, error=error)


@dataclass
class Usage:
    """Daily chat usage for one user and lesson. None limit means unlimited."""
    count: int
    limit: Optional[int]
    remaining: Optional[int]

    @property
    def is_unlimited(self) -> bool:
        return self.limit is None

    def to_dict(self) -> dict:
        """Wire format: unlimited is sent as null."""
        return {
            "chatCount": self.count,
            "limit": self.limit,
            "remaining": self.remaining,
        }


@dataclass
class QuotaResult:
    """Result of a check-and-consume operation."""
    allowed: bool
    tier: MembershipTier = MembershipTier.VISITOR
    reason: Optional[str] = None  # "tier_too_low", "quota_exceeded"
    count: int = 0
    limit: Optional[int] = None
    remaining: Optional[int] = None
    charged: bool = False  # Whether a chat turn was recorded in the store
    message: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "allowed": self.allowed,
            "tier": self.tier.value,
            "reason": self.reason,
            "currentCount": self.count,
            "limit": self.limit,
            "remaining": self.remaining,
            "message": self.message,
        }


@dataclass
class ChatLimitTable:
    """Daily chat limits per tier; None means unlimited, 0 means no chat."""
    daily_limits: Dict[MembershipTier, Optional[int]] = field(default_factory=dict)
    free_trial_limits: Dict[MembershipTier, Optional[int]] = field(default_factory=dict)

    @classmethod
    def from_config(
        cls,
        daily_limits: Mapping[str, Optional[int]],
        free_trial_limits: Optional[Mapping[str, Optional[int]]] = None,
    ) -> "ChatLimitTable":
        """Build the table from configuration, rejecting unknown tiers or bad limits."""
        return cls(
            daily_limits=cls._parse(daily_limits, "daily_limits"),
            free_trial_limits=cls._parse(free_trial_limits or {}, "free_trial_limits"),
        )

    @staticmethod
    def _parse(table: Mapping[str, Optional[int]], name: str) -> Dict[MembershipTier, Optional[int]]:
        parsed = {}
        for tier_value, limit in table.items():
            tier = MembershipTier.parse(tier_value)
            if tier is None:
                raise NotConfiguredError(f"{name}: unknown tier {tier_value!r}")
            if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
                raise NotConfiguredError(f"{name}: invalid limit {limit!r} for {tier_value!r}")
            parsed[tier] = limit
        return parsed

    def limit_for(self, tier: MembershipTier, sample_flag: SampleFlag = False) -> Optional[int]:
        """
        Look up the daily limit for a tier.

        freeTrial lessons use the free_trial_limits entry when the tier has one.

        Raises:
            NotConfiguredError: If the tier is missing from the daily table
        """
        if is_free_trial(sample_flag) and tier in self.free_trial_limits:
            return self.free_trial_limits[tier]
        if tier not in self.daily_limits:
            raise NotConfiguredError(f"No daily chat limit configured for tier {tier.value!r}")
        return self.daily_limits[tier]

    def upgrade_tier(self, tier: MembershipTier) -> Optional[MembershipTier]:
        """Lowest tier above `tier` whose daily limit is larger, or None."""
        current = self.daily_limits.get(tier, 0)
        if current is None:
            return None
        for candidate in sorted(self.daily_limits, key=lambda t: t.rank):
            if candidate <= tier:
                continue
            limit = self.daily_limits[candidate]
            if limit is None or limit > current:
                return candidate
        return None
