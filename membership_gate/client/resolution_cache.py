"""
Client-side cache of the resolved membership.

Each client keeps the last verified membership and only asks the server
again once the entry is older than its TTL, or when the caller forces a
refresh after activation or logout.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Callable, Optional

from ..membership.models import MembershipTier
from ..membership.resolver import resolve_effective_tier
from .membership_client import MembershipClientError, MembershipSnapshot

logger = logging.getLogger(__name__)


class ClientClass(Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"


DEFAULT_TTLS = {
    ClientClass.DESKTOP: 30,
    ClientClass.MOBILE: 300,
}


def ttls_from_config(cache_config) -> dict:
    """Per-client-class TTLs from a CacheConfig."""
    return {
        ClientClass.DESKTOP: cache_config.desktop_ttl_seconds,
        ClientClass.MOBILE: cache_config.mobile_ttl_seconds,
    }


@dataclass
class DevOverride:
    """Developer tier override, set explicitly by a settings panel."""
    tier: Optional[MembershipTier] = None

    def set(self, tier) -> None:
        self.tier = MembershipTier.parse(tier)

    def clear(self) -> None:
        self.tier = None


class MembershipCache:
    """TTL cache in front of a membership fetch function."""

    def __init__(
        self,
        fetch: Callable[[], MembershipSnapshot],
        client_class: ClientClass = ClientClass.DESKTOP,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetch = fetch
        self.client_class = client_class
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else DEFAULT_TTLS[client_class]
        self.clock = clock
        self._snapshot: Optional[MembershipSnapshot] = None
        self._fetched_at: Optional[float] = None
        self._lock = Lock()

    def is_fresh(self) -> bool:
        if self._snapshot is None or self._fetched_at is None:
            return False
        return self.clock() - self._fetched_at < self.ttl_seconds

    def get(self, force_refresh: bool = False) -> MembershipSnapshot:
        """
        Return the cached membership, fetching when stale or forced.

        A failed fetch yields a visitor snapshot and is not cached.
        """
        with self._lock:
            if not force_refresh and self.is_fresh():
                return self._snapshot

            try:
                snapshot = self.fetch()
            except MembershipClientError as e:
                logger.warning(f"Membership refresh failed, treating caller as visitor: {e}")
                return MembershipSnapshot.visitor()

            self._snapshot = snapshot
            self._fetched_at = self.clock()
            return snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None
            self._fetched_at = None

    def effective_tier(
        self,
        dev_override: Optional[DevOverride] = None,
        is_production: bool = True,
        force_refresh: bool = False,
    ) -> MembershipTier:
        """Cached real tier, replaced by the dev override outside production."""
        snapshot = self.get(force_refresh=force_refresh)
        override = dev_override.tier if dev_override is not None else None
        return resolve_effective_tier(snapshot.real_tier, override, is_production)
