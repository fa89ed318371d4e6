"""
Signed membership credentials.

A credential is an HS256 JWT carried in an HTTP-only cookie. Claims on the
wire: userId, tier, email, deviceId, activatedAt (ms epoch), iat, exp.
Claims are only ever read through CredentialVerifier.verify, which checks the
signature and expiry before returning anything.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt

from ..errors import CredentialExpired, InvalidCredential, NotConfiguredError
from .models import Claims, MembershipTier

logger = logging.getLogger(__name__)

PLACEHOLDER_SECRET = "your-secret-key-change-in-production"

# Credential lifetime per tier, also used as the cookie max-age
_LIFETIMES = {
    MembershipTier.LIFETIME: timedelta(days=10 * 365),
    MembershipTier.YEARLY: timedelta(days=365),
}
_DEFAULT_LIFETIME = timedelta(days=90)


def resolve_jwt_secret(secret: Optional[str], is_production: bool) -> str:
    """
    Return the signing secret, refusing to run production without a real one.

    Args:
        secret: Configured secret (may be empty)
        is_production: Whether the service runs in production

    Returns:
        The secret to sign and verify credentials with

    Raises:
        NotConfiguredError: In production when the secret is missing or the placeholder
    """
    if not secret or secret == PLACEHOLDER_SECRET:
        if is_production:
            raise NotConfiguredError("JWT_SECRET is not configured for production")
        logger.warning("Using placeholder JWT secret; configure JWT_SECRET before deploying")
        return PLACEHOLDER_SECRET
    return secret


def credential_lifetime(tier: MembershipTier) -> timedelta:
    """Lifetime of a freshly issued credential for the tier."""
    return _LIFETIMES.get(tier, _DEFAULT_LIFETIME)


class CredentialVerifier:
    """Validates signed credentials and extracts their claims."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise NotConfiguredError("Credential secret is required")
        self.secret = secret
        self.algorithm = algorithm

    def verify(self, token: Optional[str]) -> Claims:
        """
        Verify a credential and return its claims.

        Args:
            token: Raw token string from the credential cookie

        Returns:
            Verified Claims

        Raises:
            CredentialExpired: If the token has expired
            InvalidCredential: For any other signature or structure failure
        """
        if not token or not isinstance(token, str):
            raise InvalidCredential("Empty credential")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise CredentialExpired("Credential has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidCredential(f"Invalid credential: {e}")
        except Exception as e:
            # Verification faults are treated as "not authenticated"
            logger.warning(f"Unexpected credential verification error: {e}")
            raise InvalidCredential("Credential could not be verified")

        user_id = payload.get("userId")
        if not user_id or not isinstance(user_id, str):
            raise InvalidCredential("Credential has no user id")

        tier = MembershipTier.parse(payload.get("tier"))
        if tier is None:
            raise InvalidCredential(f"Credential has unknown tier: {payload.get('tier')!r}")
        if tier == MembershipTier.VISITOR:
            raise InvalidCredential("Credential cannot carry the visitor tier")

        email = payload.get("email")
        if email is not None and not isinstance(email, str):
            raise InvalidCredential("Credential email must be a string")

        return Claims(
            user_id=user_id,
            tier=tier,
            email=email or None,
            issued_at=self._issued_at(payload),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            device_id=payload.get("deviceId"),
        )

    @staticmethod
    def _issued_at(payload: dict) -> datetime:
        """Activation time in ms if present, else the iat claim."""
        activated_at = payload.get("activatedAt")
        if isinstance(activated_at, (int, float)) and activated_at > 0:
            return datetime.fromtimestamp(activated_at / 1000, tz=timezone.utc)
        return datetime.fromtimestamp(payload["iat"], tz=timezone.utc)


class CredentialIssuer:
    """Signs credentials for the activation flow and for development tooling."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise NotConfiguredError("Credential secret is required")
        self.secret = secret
        self.algorithm = algorithm

    def issue(
        self,
        user_id: Optional[str],
        tier: MembershipTier,
        email: Optional[str] = None,
        device_id: Optional[str] = None,
        lifetime: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[str, int]:
        """
        Sign a credential for a user.

        Args:
            user_id: User identity (generated when not given)
            tier: Membership tier to embed
            email: Optional email address
            device_id: Optional device identifier
            lifetime: Override the tier-based lifetime
            now: Issuance time (defaults to the current UTC time)

        Returns:
            Tuple of (token, cookie max-age in seconds)
        """
        if tier == MembershipTier.VISITOR:
            raise ValueError("Visitors have no credential")
        now = now or datetime.now(timezone.utc)
        lifetime = lifetime if lifetime is not None else credential_lifetime(tier)
        user_id = user_id or f"user_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:7]}"

        payload = {
            "userId": user_id,
            "tier": tier.value,
            "activatedAt": int(now.timestamp() * 1000),
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
        }
        if email:
            payload["email"] = email.strip()
        if device_id:
            payload["deviceId"] = device_id

        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        logger.info(f"Issued credential: user={user_id}, tier={tier.value}")
        return token, int(lifetime.total_seconds())
