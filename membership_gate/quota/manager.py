"""
Quota ledger for per-lesson AI chat usage.
"""

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import NotConfiguredError, Reason
from ..membership.models import MembershipTier
from ..permissions.models import SampleFlag
from .models import ChatLimitTable, QuotaResult, StoreResult, Usage
from .stores import CounterStore

logger = logging.getLogger(__name__)


class QuotaLedger:
    """
    Tracks daily chat turns per (user, lesson) against tier limits.

    Tier behavior (defaults):
    - LIFETIME: Unlimited, the store is never touched
    - YEARLY: 18 turns per lesson per day
    - QUARTERLY / TRIAL / VISITOR: Chat not included (limit 0)
    - TRIAL on a freeTrial lesson: Unlimited

    Counters live in a shared store and are only changed through its atomic
    increment. A failing store never blocks a chat turn: reads count as zero,
    failed increments are logged and the turn proceeds.
    """

    KEY_PREFIX = "chat"

    def __init__(
        self,
        limits: ChatLimitTable,
        store: CounterStore,
        timezone: str = "Asia/Shanghai",
        key_ttl_seconds: int = 2 * 24 * 3600,
        fallback_store: Optional[CounterStore] = None,
    ):
        """
        Initialize QuotaLedger.

        Args:
            limits: Per-tier daily limits
            store: Shared counter store
            timezone: IANA zone whose calendar day namespaces the keys
            key_ttl_seconds: Expiry set on each increment, for garbage collection only
            fallback_store: Process-local store used when the shared one fails.
                Must be None in production.
        """
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise NotConfiguredError(f"Unknown quota timezone {timezone!r}") from e
        self.limits = limits
        self.store = store
        self.key_ttl_seconds = key_ttl_seconds
        self.fallback_store = fallback_store

    def today(self, now: Optional[datetime] = None) -> date:
        """Current calendar day in the quota timezone."""
        if now is None:
            return datetime.now(self.tz).date()
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        return now.astimezone(self.tz).date()

    def day_key(self, user_id: str, lesson_id: str, day: Optional[date] = None) -> str:
        """Build the counter key for a user, lesson and day."""
        day = day or self.today()
        return f"{self.KEY_PREFIX}:{user_id}:{lesson_id}:{day.isoformat()}"

    def limit_for(self, tier: MembershipTier, sample_flag: SampleFlag = False) -> Optional[int]:
        return self.limits.limit_for(tier, sample_flag)

    def get_usage(
        self,
        user_id: str,
        lesson_id: str,
        tier: MembershipTier,
        sample_flag: SampleFlag = False,
    ) -> Usage:
        """
        Get today's usage for display.

        Returns:
            Usage with count, limit and remaining. Unlimited tiers get
            Usage(0, None, None) without a store read.

        Raises:
            NotConfiguredError: If the tier has no configured limit
        """
        limit = self.limit_for(tier, sample_flag)
        if limit is None:
            return Usage(count=0, limit=None, remaining=None)

        count = self._read_count(self.day_key(user_id, lesson_id))
        return Usage(count=count, limit=limit, remaining=max(0, limit - count))

    def increment(self, user_id: str, lesson_id: str) -> Optional[int]:
        """
        Record one chat turn.

        Returns:
            The post-increment count, or None if no store accepted the write
        """
        key = self.day_key(user_id, lesson_id)
        result = self._call_store("incr", key, self.key_ttl_seconds)
        if not result.ok:
            logger.warning(f"Chat count not recorded for {key}: {Reason.STORE_UNAVAILABLE.value} ({result.error})")
            return None
        return result.value

    def check_and_consume(
        self,
        user_id: str,
        lesson_id: str,
        tier: MembershipTier,
        sample_flag: SampleFlag = False,
    ) -> QuotaResult:
        """
        Main entry point - check quota and charge one chat turn if allowed.

        The charge happens before the completion call, so a failed completion
        still counts.

        Returns:
            QuotaResult with allowed status and details
        """
        limit = self.limit_for(tier, sample_flag)

        logger.info(f"Quota check: user={user_id}, lesson={lesson_id}, tier={tier.value}, limit={limit}")

        if limit is None:
            return QuotaResult(allowed=True, tier=tier, message="无限次对话")

        if limit == 0:
            return QuotaResult(
                allowed=False,
                tier=tier,
                reason=Reason.TIER_TOO_LOW.value,
                limit=0,
                remaining=0,
                message="当前会员等级不包含 AI 对话",
            )

        key = self.day_key(user_id, lesson_id)
        count = self._read_count(key)
        if count >= limit:
            return self._exceeded(tier, count, limit)

        new_count = self.increment(user_id, lesson_id)
        if new_count is None:
            # Store down: let the turn through uncharged
            return QuotaResult(
                allowed=True,
                tier=tier,
                count=count,
                limit=limit,
                remaining=max(0, limit - count - 1),
            )

        if new_count > limit:
            # Another request took the last turn between the read and the increment
            return self._exceeded(tier, new_count, limit, charged=True)

        return QuotaResult(
            allowed=True,
            tier=tier,
            count=new_count,
            limit=limit,
            remaining=limit - new_count,
            charged=True,
            message=f"今日剩余 {limit - new_count} 次",
        )

    def reset_usage(self, user_id: str, lesson_id: str, day: Optional[date] = None) -> bool:
        """
        Delete a day's counter. Operator use only.

        Returns:
            True if a counter existed and was removed
        """
        key = self.day_key(user_id, lesson_id, day)
        result = self._call_store("delete", key)
        if not result.ok:
            logger.warning(f"Failed to reset {key}: {result.error}")
            return False
        logger.info(f"Reset chat counter {key}")
        return bool(result.value)

    def _exceeded(self, tier: MembershipTier, count: int, limit: int, charged: bool = False) -> QuotaResult:
        return QuotaResult(
            allowed=False,
            tier=tier,
            reason=Reason.QUOTA_EXCEEDED.value,
            count=count,
            limit=limit,
            remaining=0,
            charged=charged,
            message=f"今日对话次数已用完 ({limit}/{limit})",
        )

    def _read_count(self, key: str) -> int:
        result = self._call_store("get", key)
        if not result.ok:
            logger.warning(f"Chat count unavailable for {key}: {Reason.STORE_UNAVAILABLE.value} ({result.error})")
            return 0
        return result.value

    def _call_store(self, method: str, *args) -> StoreResult:
        result = getattr(self.store, method)(*args)
        if result.ok or self.fallback_store is None:
            return result
        logger.warning(f"Counter store {method} failed ({result.error}), using in-process fallback")
        return getattr(self.fallback_store, method)(*args)
