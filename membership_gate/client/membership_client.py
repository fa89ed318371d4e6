"""
HTTP client for the membership query endpoint.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..errors import MembershipGateError
from ..membership.models import MembershipTier

logger = logging.getLogger(__name__)


class MembershipClientError(MembershipGateError):
    """The membership endpoint could not be reached or returned garbage."""


@dataclass
class MembershipSnapshot:
    """What the server reported about the caller's verified membership."""
    is_authenticated: bool = False
    real_tier: MembershipTier = MembershipTier.VISITOR
    email: Optional[str] = None

    @classmethod
    def visitor(cls) -> "MembershipSnapshot":
        return cls()

    @classmethod
    def from_response(cls, payload: dict) -> "MembershipSnapshot":
        """Build a snapshot from the /api/membership JSON body."""
        data = payload.get("data") or {}
        if not payload.get("success") or not data.get("isAuthenticated"):
            return cls.visitor()
        tier = MembershipTier.parse(data.get("tier"))
        if tier is None:
            raise MembershipClientError(f"Unknown tier in membership response: {data.get('tier')!r}")
        return cls(is_authenticated=True, real_tier=tier, email=data.get("email"))


class MembershipClient:
    """Fetches the verified membership from a membership gate server."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
        cookie_name: str = "ae_membership",
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.cookie_name = cookie_name

    def set_credential(self, token: Optional[str]) -> None:
        """Attach (or with None, drop) the membership credential."""
        if token:
            self.session.cookies.set(self.cookie_name, token)
        else:
            self.session.cookies.pop(self.cookie_name, None)

    def fetch(self) -> MembershipSnapshot:
        """
        Query GET /api/membership.

        Raises:
            MembershipClientError: On network errors or a malformed response
        """
        url = f"{self.base_url}/api/membership"
        logger.debug(f"Fetching membership from {url}")
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.exceptions.RequestException as e:
            raise MembershipClientError(f"Membership request failed: {e}") from e
        except ValueError as e:
            raise MembershipClientError(f"Membership response is not JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MembershipClientError("Membership response is not a JSON object")
        return MembershipSnapshot.from_response(payload)
