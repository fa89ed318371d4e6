"""
Membership resolution: credential verification and effective tier.
"""

from .models import MembershipTier, Claims, MembershipStatus, RequestIdentity
from .credentials import CredentialVerifier, CredentialIssuer
from .registry import MembershipRegistry
from .resolver import resolve_effective_tier

__all__ = [
    "MembershipTier",
    "Claims",
    "MembershipStatus",
    "RequestIdentity",
    "CredentialVerifier",
    "CredentialIssuer",
    "MembershipRegistry",
    "resolve_effective_tier",
]
