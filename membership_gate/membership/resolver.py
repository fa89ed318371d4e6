"""
Effective tier resolution.
"""

from typing import Optional

from .models import MembershipTier


def resolve_effective_tier(
    real_tier: Optional[MembershipTier],
    dev_override: Optional[MembershipTier],
    is_production: bool,
) -> MembershipTier:
    """
    Combine the verified tier with an optional development override.

    The override wins only outside production and only when it is a real
    tier above visitor. The production flag must come from server-side
    configuration, never from the request.

    Args:
        real_tier: Tier from the verified credential (None when unauthenticated)
        dev_override: Development override, if any
        is_production: Server-controlled environment flag

    Returns:
        The effective tier, never None
    """
    if not is_production and dev_override is not None and dev_override != MembershipTier.VISITOR:
        return dev_override
    return real_tier or MembershipTier.VISITOR
