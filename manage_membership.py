#!/usr/bin/env python3
"""
Operator tooling for the membership gate:
- issue a membership credential (activation testing, support)
- inspect or reset a user's daily chat counter
- record or revoke members in the membership registry
- validate the configured tier tables and secret
"""

import argparse
import json
import logging
import sys
from datetime import date
from typing import List, Optional

from config_manager import ConfigManager
from membership_gate.content.catalog import LessonCatalog
from membership_gate.errors import NotConfiguredError
from membership_gate.main import resolve_data_file
from membership_gate.membership.credentials import (
    CredentialIssuer,
    CredentialVerifier,
    credential_lifetime,
    resolve_jwt_secret,
)
from membership_gate.membership.models import MembershipTier
from membership_gate.membership.registry import ACTIVE, REVOKED, MembershipRegistry
from membership_gate.permissions.evaluator import PermissionEvaluator
from membership_gate.permissions.models import parse_sample_flag
from membership_gate.quota.factory import create_counter_stores
from membership_gate.quota.manager import QuotaLedger
from membership_gate.quota.models import ChatLimitTable

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _registry(config: ConfigManager) -> MembershipRegistry:
    paths_config = config.get_paths_config()
    return MembershipRegistry(resolve_data_file(paths_config, paths_config.members_file))


def _build_ledger(config: ConfigManager) -> QuotaLedger:
    quota_config = config.get_quota_config()
    is_production = config.get_app_config().is_production
    store, fallback = create_counter_stores(quota_config.redis_url, is_production)
    return QuotaLedger(
        limits=ChatLimitTable.from_config(quota_config.daily_limits, quota_config.free_trial_limits),
        store=store,
        timezone=quota_config.timezone,
        key_ttl_seconds=quota_config.key_ttl_seconds,
        fallback_store=fallback,
    )


def cmd_issue(config: ConfigManager, args) -> int:
    tier = MembershipTier.parse(args.tier)
    if tier is None or tier == MembershipTier.VISITOR:
        logger.error(f"Unknown tier: {args.tier}")
        return 2

    membership_config = config.get_membership_config()
    secret = resolve_jwt_secret(membership_config.jwt_secret, config.get_app_config().is_production)
    issuer = CredentialIssuer(secret, membership_config.jwt_algorithm)

    token, max_age = issuer.issue(args.user_id, tier, email=args.email)
    claims = CredentialVerifier(secret, membership_config.jwt_algorithm).verify(token)
    if args.register:
        _registry(config).set_status(claims.user_id, ACTIVE, tier=tier.value, email=args.email)

    print(json.dumps({
        "cookie": membership_config.cookie_name,
        "token": token,
        "maxAge": max_age,
        "userId": claims.user_id,
        "tier": claims.tier.value,
    }, ensure_ascii=False, indent=2))
    return 0


def cmd_usage(config: ConfigManager, args) -> int:
    tier = MembershipTier.parse(args.tier)
    if tier is None:
        logger.error(f"Unknown tier: {args.tier}")
        return 2

    ledger = _build_ledger(config)
    usage = ledger.get_usage(args.user_id, args.lesson_id, tier, parse_sample_flag(args.sample))
    print(json.dumps({
        "key": ledger.day_key(args.user_id, args.lesson_id),
        **usage.to_dict(),
    }, indent=2))
    return 0


def cmd_reset(config: ConfigManager, args) -> int:
    ledger = _build_ledger(config)
    day = date.fromisoformat(args.day) if args.day else None
    removed = ledger.reset_usage(args.user_id, args.lesson_id, day)
    key = ledger.day_key(args.user_id, args.lesson_id, day)
    print(f"{'Removed' if removed else 'No counter at'} {key}")
    return 0


def cmd_revoke(config: ConfigManager, args) -> int:
    registry = _registry(config)
    if not registry.exists():
        logger.error(f"No membership registry at {registry.members_file}")
        return 1
    if registry.lookup(args.user_id) is None:
        logger.error(f"User not in registry: {args.user_id}")
        return 1

    registry.set_status(args.user_id, REVOKED)
    print(f"Revoked {args.user_id}")
    return 0


def cmd_check(config: ConfigManager, args) -> int:
    issues: List[str] = []
    app_config = config.get_app_config()

    try:
        resolve_jwt_secret(config.get_membership_config().jwt_secret, app_config.is_production)
    except NotConfiguredError as e:
        issues.append(str(e))

    permissions_config = config.get_permissions_config()
    try:
        PermissionEvaluator(permissions_config.section_floors, permissions_config.feature_floors)
    except NotConfiguredError as e:
        issues.append(str(e))

    quota_config = config.get_quota_config()
    try:
        limits = ChatLimitTable.from_config(quota_config.daily_limits, quota_config.free_trial_limits)
        missing = [t.value for t in MembershipTier if t not in limits.daily_limits]
        if missing:
            issues.append(f"daily_limits missing tiers: {', '.join(missing)}")
    except NotConfiguredError as e:
        issues.append(str(e))

    if app_config.is_production and not quota_config.redis_url:
        issues.append("REDIS_URL is not set in production")

    paths_config = config.get_paths_config()
    catalog = LessonCatalog(resolve_data_file(paths_config, paths_config.lessons_file))
    print(f"Environment: {app_config.environment}")
    print(f"Lessons loaded: {len(catalog)}")
    registry = _registry(config)
    print(f"Membership registry: {len(registry) if registry.exists() else 'not found'}")
    for tier in MembershipTier:
        print(f"  {tier.value:<10} credential lifetime {credential_lifetime(tier).days}d")

    if issues:
        for issue in issues:
            logger.error(issue)
        return 1

    print("Configuration OK")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Membership gate management script")
    parser.add_argument("--config", default="membership_config.json",
                        help="Path to the JSON config file")
    sub = parser.add_subparsers(dest="command", required=True)

    p_issue = sub.add_parser("issue", help="Issue a membership credential")
    p_issue.add_argument("tier", help="Membership tier (trial, quarterly, yearly, lifetime)")
    p_issue.add_argument("--user-id", help="User id (generated when omitted)")
    p_issue.add_argument("--email", help="Email recorded in the credential")
    p_issue.add_argument("--register", action="store_true",
                         help="Record the member as active in the membership registry")
    p_issue.set_defaults(func=cmd_issue)

    p_usage = sub.add_parser("usage", help="Show today's chat usage for a user and lesson")
    p_usage.add_argument("user_id")
    p_usage.add_argument("lesson_id")
    p_usage.add_argument("--tier", default="yearly", help="Tier used for the limit lookup")
    p_usage.add_argument("--sample", default="", help="Sample flag: true, freeTrial or empty")
    p_usage.set_defaults(func=cmd_usage)

    p_reset = sub.add_parser("reset", help="Reset a chat counter")
    p_reset.add_argument("user_id")
    p_reset.add_argument("lesson_id")
    p_reset.add_argument("--day", help="Day as YYYY-MM-DD (default: today in the quota timezone)")
    p_reset.set_defaults(func=cmd_reset)

    p_revoke = sub.add_parser("revoke", help="Revoke a member in the membership registry")
    p_revoke.add_argument("user_id")
    p_revoke.set_defaults(func=cmd_revoke)

    p_check = sub.add_parser("check", help="Validate configuration")
    p_check.set_defaults(func=cmd_check)

    args = parser.parse_args(argv)
    config = ConfigManager(args.config)

    try:
        return args.func(config, args)
    except NotConfiguredError as e:
        logger.error(f"Configuration error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
