"""
Error taxonomy shared by the membership, permission and quota subsystems.
"""

from enum import Enum


class Reason(str, Enum):
    """Machine-readable reasons returned to callers and written to logs."""
    UNAUTHENTICATED = "unauthenticated"   # No credential or verification failed
    TIER_TOO_LOW = "tier_too_low"         # Authenticated, below the required floor
    QUOTA_EXCEEDED = "quota_exceeded"     # Daily AI chat limit reached
    STORE_UNAVAILABLE = "store_unavailable"  # Counter store I/O failure (logged only)
    NOT_CONFIGURED = "not_configured"     # Missing table entry or secret at deploy time


class MembershipGateError(Exception):
    """Base exception for the membership gate."""
    reason: Reason = Reason.NOT_CONFIGURED


class InvalidCredential(MembershipGateError):
    """Credential failed signature, structure or expiry checks."""
    reason = Reason.UNAUTHENTICATED


class CredentialExpired(InvalidCredential):
    """Credential signature is valid but the token has expired."""


class NotConfiguredError(MembershipGateError):
    """A required mapping, table entry or secret is missing.

    This is an operator fault and is surfaced as a hard failure, never
    folded into the user-facing reasons.
    """
    reason = Reason.NOT_CONFIGURED
