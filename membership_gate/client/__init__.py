"""
Client-side membership resolution.
"""

from .membership_client import MembershipClient, MembershipClientError, MembershipSnapshot
from .resolution_cache import DEFAULT_TTLS, ClientClass, DevOverride, MembershipCache, ttls_from_config

__all__ = [
    "MembershipClient",
    "MembershipClientError",
    "MembershipSnapshot",
    "DEFAULT_TTLS",
    "ClientClass",
    "DevOverride",
    "MembershipCache",
    "ttls_from_config",
]
