"""
Membership services for credential-based identity resolution.
"""
import logging
from typing import Callable, Optional

from flask import request

from ..errors import CredentialExpired, InvalidCredential
from .credentials import CredentialVerifier
from .models import MembershipStatus, MembershipTier, RequestIdentity
from .resolver import resolve_effective_tier

logger = logging.getLogger(__name__)

# Membership registry lookup: user_id -> "active" | "revoked" | None (not found)
StatusLookup = Callable[[str], Optional[str]]


class MembershipService:
    """Resolves the verified and effective membership of the current request."""

    def __init__(
        self,
        verifier: CredentialVerifier,
        cookie_name: str,
        is_production: bool,
        dev_override_header: str = "X-Dev-Tier",
        dev_user_id: str = "dev_user_fixed",
        status_lookup: Optional[StatusLookup] = None,
    ):
        self.verifier = verifier
        self.cookie_name = cookie_name
        self.is_production = is_production
        self.dev_override_header = dev_override_header
        self.dev_user_id = dev_user_id
        self.status_lookup = status_lookup

    def get_credential(self) -> Optional[str]:
        """Get the raw credential from the request cookie."""
        return request.cookies.get(self.cookie_name)

    def get_real_membership(self) -> MembershipStatus:
        """
        Verify the request credential and return the real membership.

        Never raises for credential problems: a missing or invalid credential
        resolves to visitor, with clear_cookie set when a stale token was sent.
        """
        token = self.get_credential()
        if not token:
            return MembershipStatus.anonymous("no_credential")

        try:
            claims = self.verifier.verify(token)
        except CredentialExpired:
            logger.info("Membership credential expired")
            return MembershipStatus.anonymous("token_expired", clear_cookie=True)
        except InvalidCredential as e:
            logger.warning(f"Membership credential rejected: {e}")
            return MembershipStatus.anonymous("token_invalid", clear_cookie=True)

        if self.status_lookup is not None:
            record_status = self.status_lookup(claims.user_id)
            if record_status is None:
                logger.warning(f"Membership record not found: user={claims.user_id}")
                return MembershipStatus.anonymous("user_not_found", clear_cookie=True)
            if record_status == "revoked":
                logger.warning(f"Membership revoked: user={claims.user_id}")
                return MembershipStatus.anonymous("membership_revoked", clear_cookie=True)

        return MembershipStatus(
            is_authenticated=True,
            tier=claims.tier,
            user_id=claims.user_id,
            email=claims.email,
            issued_at=claims.issued_at,
        )

    def get_dev_override(self) -> Optional[MembershipTier]:
        """Read the development override header, only outside production."""
        if self.is_production:
            return None
        return MembershipTier.parse(request.headers.get(self.dev_override_header))

    def resolve_identity(self) -> RequestIdentity:
        """Resolve the identity used for quota and permission decisions."""
        dev_override = self.get_dev_override()
        effective = resolve_effective_tier(None, dev_override, self.is_production)

        if effective != MembershipTier.VISITOR:
            # Simulated membership replaces the verified identity
            logger.info(f"Dev mode: using simulated tier {dev_override.value}")
            return RequestIdentity(
                user_id=self.dev_user_id,
                real_tier=MembershipTier.VISITOR,
                effective_tier=effective,
                is_authenticated=True,
                override_applied=True,
            )

        status = self.get_real_membership()
        return RequestIdentity(
            user_id=status.user_id,
            real_tier=status.tier,
            effective_tier=resolve_effective_tier(status.tier, None, self.is_production),
            email=status.email,
            is_authenticated=status.is_authenticated,
        )

    def clear_credential(self, response):
        """Expire the credential cookie on the given response."""
        response.set_cookie(
            self.cookie_name,
            "",
            max_age=0,
            httponly=True,
            secure=self.is_production,
            samesite="Lax",
            path="/",
        )
        return response

    def set_credential(self, response, token: str, max_age: int):
        """Store a freshly issued credential on the given response."""
        response.set_cookie(
            self.cookie_name,
            token,
            max_age=max_age,
            httponly=True,
            secure=self.is_production,
            samesite="Lax",
            path="/",
        )
        return response
