"""
Factory for creating the quota ledger module.
"""
import logging

from .manager import QuotaLedger
from .models import ChatLimitTable
from .routes import create_quota_routes
from .stores import CounterStore, InMemoryCounterStore, RedisCounterStore

logger = logging.getLogger(__name__)


def create_counter_stores(redis_url: str, is_production: bool):
    """
    Pick the shared store and, outside production, a process-local fallback.

    Returns:
        Tuple of (store, fallback_store)
    """
    if redis_url:
        fallback = None if is_production else InMemoryCounterStore()
        return RedisCounterStore(redis_url), fallback

    if is_production:
        logger.warning("No REDIS_URL configured in production, defaulting to redis://localhost:6379/0")
        return RedisCounterStore("redis://localhost:6379/0"), None

    logger.info("No REDIS_URL configured, using in-process chat counters")
    return InMemoryCounterStore(), None


def create_quota_module(quota_config, membership_service, is_production: bool,
                        store: CounterStore = None) -> dict:
    """
    Create quota ledger module.

    Args:
        quota_config: QuotaConfig with limit tables, timezone and store URL
        membership_service: MembershipService resolving the caller's identity
        is_production: Server-controlled environment flag
        store: Optional counter store, replacing the configured one

    Returns:
        Dictionary with:
        - ledger: QuotaLedger instance
        - blueprint: Flask blueprint for usage routes
    """
    limits = ChatLimitTable.from_config(quota_config.daily_limits, quota_config.free_trial_limits)

    fallback = None
    if store is None:
        store, fallback = create_counter_stores(quota_config.redis_url, is_production)

    ledger = QuotaLedger(
        limits=limits,
        store=store,
        timezone=quota_config.timezone,
        key_ttl_seconds=quota_config.key_ttl_seconds,
        fallback_store=fallback,
    )

    blueprint = create_quota_routes(ledger, membership_service)

    return {
        "ledger": ledger,
        "blueprint": blueprint
    }
