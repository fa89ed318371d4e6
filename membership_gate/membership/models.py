"""
Data models for membership resolution.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class MembershipTier(Enum):
    """Membership tiers in ascending order."""
    VISITOR = "visitor"      # Not logged in / not activated
    TRIAL = "trial"          # Paid trial, freeTrial lessons only
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    LIFETIME = "lifetime"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def __ge__(self, other):
        if not isinstance(other, MembershipTier):
            return NotImplemented
        return self.rank >= other.rank

    def __gt__(self, other):
        if not isinstance(other, MembershipTier):
            return NotImplemented
        return self.rank > other.rank

    def __le__(self, other):
        if not isinstance(other, MembershipTier):
            return NotImplemented
        return self.rank <= other.rank

    def __lt__(self, other):
        if not isinstance(other, MembershipTier):
            return NotImplemented
        return self.rank < other.rank

    @property
    def label(self) -> str:
        return TIER_LABELS[self]

    @classmethod
    def parse(cls, value) -> Optional["MembershipTier"]:
        """Parse a tier value, returning None for empty or unknown input."""
        if isinstance(value, cls):
            return value
        if not value or not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["MembershipTier"]:
        """Convert a display label (as stored in membership records) to a tier."""
        if not label:
            return None
        for tier, tier_label in TIER_LABELS.items():
            if tier_label == label.strip():
                return tier
        return None


_TIER_ORDER = [
    MembershipTier.VISITOR,
    MembershipTier.TRIAL,
    MembershipTier.QUARTERLY,
    MembershipTier.YEARLY,
    MembershipTier.LIFETIME,
]

TIER_LABELS = {
    MembershipTier.VISITOR: "游客",
    MembershipTier.TRIAL: "试用用户",
    MembershipTier.QUARTERLY: "季度会员",
    MembershipTier.YEARLY: "年度会员",
    MembershipTier.LIFETIME: "永久会员",
}


class Claims(BaseModel):
    """Verified credential contents."""
    user_id: str
    tier: MembershipTier
    email: Optional[str] = None
    issued_at: datetime
    expires_at: Optional[datetime] = None
    device_id: Optional[str] = None


@dataclass
class MembershipStatus:
    """Result of resolving the real (verified) membership for a request."""
    is_authenticated: bool
    tier: MembershipTier = MembershipTier.VISITOR
    user_id: Optional[str] = None
    email: Optional[str] = None
    issued_at: Optional[datetime] = None
    reason: Optional[str] = None  # "no_credential", "token_invalid", "token_expired", ...
    clear_cookie: bool = False

    @classmethod
    def anonymous(cls, reason: str, clear_cookie: bool = False) -> "MembershipStatus":
        return cls(is_authenticated=False, reason=reason, clear_cookie=clear_cookie)

    def to_dict(self) -> dict:
        """Wire format of the membership query endpoint."""
        if not self.is_authenticated:
            data = {
                "isAuthenticated": False,
                "tier": None,
                "tierLabel": MembershipTier.VISITOR.label,
            }
            if self.reason and self.reason != "no_credential":
                data["reason"] = self.reason
            return data

        return {
            "isAuthenticated": True,
            "tier": self.tier.value,
            "tierLabel": self.tier.label,
            "userId": self.user_id,
            "email": self.email,
            "activatedAt": self.issued_at.isoformat() if self.issued_at else None,
        }


@dataclass
class RequestIdentity:
    """Identity used for privileged decisions in a single request."""
    user_id: Optional[str]
    real_tier: MembershipTier
    effective_tier: MembershipTier
    email: Optional[str] = None
    is_authenticated: bool = False
    override_applied: bool = False
