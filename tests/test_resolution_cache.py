"""
Tests for the client-side membership cache and HTTP client.
"""
from unittest.mock import MagicMock

import pytest
import requests

from membership_gate.client.membership_client import (
    MembershipClient,
    MembershipClientError,
    MembershipSnapshot,
)
from config_manager import CacheConfig
from membership_gate.client.resolution_cache import ClientClass, DevOverride, MembershipCache, ttls_from_config
from membership_gate.membership.models import MembershipTier


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestMembershipCache:
    """Test TTL, forced refresh and failure handling."""

    def setup_method(self):
        self.clock = FakeClock()
        self.fetch = MagicMock(return_value=MembershipSnapshot(True, MembershipTier.YEARLY, "a@example.com"))

    def test_default_ttls(self):
        assert MembershipCache(self.fetch, ClientClass.DESKTOP).ttl_seconds == 30
        assert MembershipCache(self.fetch, ClientClass.MOBILE).ttl_seconds == 300

    def test_configured_ttls(self):
        ttls = ttls_from_config(CacheConfig(desktop_ttl_seconds=10, mobile_ttl_seconds=600))
        cache = MembershipCache(self.fetch, ClientClass.MOBILE, ttl_seconds=ttls[ClientClass.MOBILE], clock=self.clock)
        cache.get()
        self.clock.advance(599)
        cache.get()
        assert self.fetch.call_count == 1
        assert ttls[ClientClass.DESKTOP] == 10

    def test_fresh_entry_skips_fetch(self):
        cache = MembershipCache(self.fetch, ClientClass.DESKTOP, clock=self.clock)

        cache.get()
        self.clock.advance(29)
        snapshot = cache.get()

        assert snapshot.real_tier == MembershipTier.YEARLY
        assert self.fetch.call_count == 1

    def test_stale_entry_refetches(self):
        cache = MembershipCache(self.fetch, ClientClass.DESKTOP, clock=self.clock)

        cache.get()
        self.clock.advance(30)
        cache.get()

        assert self.fetch.call_count == 2

    def test_mobile_ttl_is_longer(self):
        cache = MembershipCache(self.fetch, ClientClass.MOBILE, clock=self.clock)

        cache.get()
        self.clock.advance(120)
        cache.get()

        assert self.fetch.call_count == 1

    def test_forced_refresh_resets_timestamp(self):
        cache = MembershipCache(self.fetch, ClientClass.DESKTOP, clock=self.clock)
        cache.get()
        self.clock.advance(5)

        self.fetch.return_value = MembershipSnapshot.visitor()
        snapshot = cache.get(force_refresh=True)
        self.clock.advance(29)
        cache.get()

        assert snapshot.real_tier == MembershipTier.VISITOR
        assert self.fetch.call_count == 2

    def test_invalidate(self):
        cache = MembershipCache(self.fetch, clock=self.clock)
        cache.get()

        cache.invalidate()
        cache.get()

        assert self.fetch.call_count == 2

    def test_fetch_failure_is_visitor_and_not_cached(self):
        self.fetch.side_effect = [MembershipClientError("offline"), MembershipSnapshot(True, MembershipTier.LIFETIME)]
        cache = MembershipCache(self.fetch, clock=self.clock)

        first = cache.get()
        second = cache.get()

        assert first.real_tier == MembershipTier.VISITOR
        assert second.real_tier == MembershipTier.LIFETIME

    def test_effective_tier_with_dev_override(self):
        cache = MembershipCache(self.fetch, clock=self.clock)
        override = DevOverride()
        override.set("lifetime")

        assert cache.effective_tier(override, is_production=False) == MembershipTier.LIFETIME
        assert cache.effective_tier(override, is_production=True) == MembershipTier.YEARLY

        override.clear()
        assert cache.effective_tier(override, is_production=False) == MembershipTier.YEARLY


class TestMembershipClient:
    """Test the /api/membership client with a mocked session."""

    def setup_method(self):
        self.session = MagicMock()
        self.client = MembershipClient("http://gate.local/", session=self.session)

    def _respond(self, payload):
        resp = MagicMock()
        resp.json.return_value = payload
        resp.raise_for_status.return_value = None
        self.session.get.return_value = resp

    def test_authenticated(self):
        self._respond({"success": True, "data": {"isAuthenticated": True, "tier": "quarterly", "email": "a@b.c"}})

        snapshot = self.client.fetch()

        assert snapshot.is_authenticated
        assert snapshot.real_tier == MembershipTier.QUARTERLY
        assert snapshot.email == "a@b.c"
        self.session.get.assert_called_once_with("http://gate.local/api/membership", timeout=5.0)

    def test_unauthenticated(self):
        self._respond({"success": True, "data": {"isAuthenticated": False, "tier": None, "tierLabel": "游客"}})

        snapshot = self.client.fetch()

        assert not snapshot.is_authenticated
        assert snapshot.real_tier == MembershipTier.VISITOR

    def test_network_error(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(MembershipClientError):
            self.client.fetch()

    def test_unknown_tier(self):
        self._respond({"success": True, "data": {"isAuthenticated": True, "tier": "gold"}})

        with pytest.raises(MembershipClientError):
            self.client.fetch()

    def test_as_cache_fetch(self):
        self._respond({"success": True, "data": {"isAuthenticated": True, "tier": "lifetime"}})
        cache = MembershipCache(self.client.fetch, ClientClass.MOBILE)

        assert cache.effective_tier() == MembershipTier.LIFETIME
