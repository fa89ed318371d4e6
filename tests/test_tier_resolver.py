"""
Tests for effective tier resolution and the request-level membership service.
"""
from flask import Flask

from membership_gate.membership.credentials import CredentialIssuer, CredentialVerifier
from membership_gate.membership.models import MembershipTier
from membership_gate.membership.resolver import resolve_effective_tier
from membership_gate.membership.services import MembershipService

SECRET = "test-secret-key-for-membership-gate-0123"


class TestResolveEffectiveTier:
    """Test the override rules."""

    def test_override_ignored_in_production(self):
        assert resolve_effective_tier(MembershipTier.TRIAL, MembershipTier.LIFETIME, True) == MembershipTier.TRIAL

    def test_override_wins_outside_production(self):
        assert resolve_effective_tier(MembershipTier.TRIAL, MembershipTier.LIFETIME, False) == MembershipTier.LIFETIME

    def test_override_can_lower_tier(self):
        assert resolve_effective_tier(MembershipTier.LIFETIME, MembershipTier.TRIAL, False) == MembershipTier.TRIAL

    def test_visitor_override_is_no_override(self):
        assert resolve_effective_tier(MembershipTier.YEARLY, MembershipTier.VISITOR, False) == MembershipTier.YEARLY

    def test_missing_real_tier_is_visitor(self):
        assert resolve_effective_tier(None, None, False) == MembershipTier.VISITOR
        assert resolve_effective_tier(None, MembershipTier.YEARLY, True) == MembershipTier.VISITOR

    def test_never_none(self):
        for real in list(MembershipTier) + [None]:
            for override in list(MembershipTier) + [None]:
                for prod in (True, False):
                    assert resolve_effective_tier(real, override, prod) is not None


class TestMembershipService:
    """Test identity resolution inside a request context."""

    def setup_method(self):
        self.app = Flask(__name__)
        self.issuer = CredentialIssuer(SECRET)
        self.verifier = CredentialVerifier(SECRET)

    def _service(self, is_production=True, status_lookup=None):
        return MembershipService(
            verifier=self.verifier,
            cookie_name="ae_membership",
            is_production=is_production,
            status_lookup=status_lookup,
        )

    def _cookie(self, tier, user_id="u1"):
        token, _ = self.issuer.issue(user_id, tier)
        return {"Cookie": f"ae_membership={token}"}

    def test_no_credential(self):
        service = self._service()
        with self.app.test_request_context("/"):
            status = service.get_real_membership()

        assert not status.is_authenticated
        assert status.tier == MembershipTier.VISITOR
        assert status.reason == "no_credential"
        assert not status.clear_cookie

    def test_valid_credential(self):
        service = self._service()
        with self.app.test_request_context("/", headers=self._cookie(MembershipTier.QUARTERLY)):
            identity = service.resolve_identity()

        assert identity.is_authenticated
        assert identity.user_id == "u1"
        assert identity.effective_tier == MembershipTier.QUARTERLY
        assert not identity.override_applied

    def test_invalid_credential_requests_cookie_clear(self):
        service = self._service()
        with self.app.test_request_context("/", headers={"Cookie": "ae_membership=garbage"}):
            status = service.get_real_membership()

        assert not status.is_authenticated
        assert status.reason == "token_invalid"
        assert status.clear_cookie

    def test_dev_header_ignored_in_production(self):
        service = self._service(is_production=True)
        headers = self._cookie(MembershipTier.TRIAL)
        headers["X-Dev-Tier"] = "lifetime"
        with self.app.test_request_context("/", headers=headers):
            identity = service.resolve_identity()

        assert identity.effective_tier == MembershipTier.TRIAL
        assert identity.user_id == "u1"

    def test_dev_header_outside_production(self):
        service = self._service(is_production=False)
        with self.app.test_request_context("/", headers={"X-Dev-Tier": "lifetime"}):
            identity = service.resolve_identity()

        assert identity.is_authenticated
        assert identity.override_applied
        assert identity.user_id == "dev_user_fixed"
        assert identity.effective_tier == MembershipTier.LIFETIME

    def test_unknown_dev_header_falls_back_to_credential(self):
        service = self._service(is_production=False)
        headers = self._cookie(MembershipTier.YEARLY)
        headers["X-Dev-Tier"] = "superuser"
        with self.app.test_request_context("/", headers=headers):
            identity = service.resolve_identity()

        assert identity.effective_tier == MembershipTier.YEARLY
        assert not identity.override_applied

    def test_revoked_membership(self):
        service = self._service(status_lookup=lambda user_id: "revoked")
        with self.app.test_request_context("/", headers=self._cookie(MembershipTier.YEARLY)):
            status = service.get_real_membership()

        assert not status.is_authenticated
        assert status.reason == "membership_revoked"
        assert status.clear_cookie

    def test_unknown_user(self):
        service = self._service(status_lookup=lambda user_id: None)
        with self.app.test_request_context("/", headers=self._cookie(MembershipTier.YEARLY)):
            status = service.get_real_membership()

        assert status.reason == "user_not_found"
