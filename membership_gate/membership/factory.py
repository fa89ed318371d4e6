"""
Factory for creating the membership module.
"""
from typing import Optional

from .credentials import CredentialIssuer, CredentialVerifier, resolve_jwt_secret
from .routes import create_membership_routes
from .services import MembershipService, StatusLookup


def create_membership_module(
    membership_config,
    is_production: bool,
    status_lookup: Optional[StatusLookup] = None,
) -> dict:
    """Create membership module with verifier, service and routes.

    Args:
        membership_config: MembershipConfig with secret and cookie settings
        is_production: Server-controlled environment flag
        status_lookup: Optional membership registry lookup

    Returns:
        Dictionary containing the verifier, issuer, service and blueprint
    """
    secret = resolve_jwt_secret(membership_config.jwt_secret, is_production)

    verifier = CredentialVerifier(secret, membership_config.jwt_algorithm)
    issuer = CredentialIssuer(secret, membership_config.jwt_algorithm)

    membership_service = MembershipService(
        verifier=verifier,
        cookie_name=membership_config.cookie_name,
        is_production=is_production,
        dev_override_header=membership_config.dev_override_header,
        dev_user_id=membership_config.dev_user_id,
        status_lookup=status_lookup,
    )

    blueprint = create_membership_routes(membership_service)

    return {
        "verifier": verifier,
        "issuer": issuer,
        "service": membership_service,
        "blueprint": blueprint
    }
