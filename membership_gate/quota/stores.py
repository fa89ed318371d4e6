"""
Counter stores for the quota ledger.

Every increment is a single atomic operation at the store level. Neither store
ever reads a count, adds one and writes it back.
"""

import logging
from threading import Lock
from typing import Dict, Optional

import redis

from .models import StoreResult

logger = logging.getLogger(__name__)


class CounterStore:
    """Interface for shared daily counters."""

    def get(self, key: str) -> StoreResult:
        raise NotImplementedError

    def incr(self, key: str, ttl_seconds: int) -> StoreResult:
        raise NotImplementedError

    def delete(self, key: str) -> StoreResult:
        raise NotImplementedError


class RedisCounterStore(CounterStore):
    """
    Redis-backed counters.

    INCR and EXPIRE run in one MULTI/EXEC pipeline, so concurrent chat turns for
    the same key serialize inside Redis. The client is created lazily with
    bounded socket timeouts and no retries.
    """

    def __init__(self, redis_url: str = "", client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self._redis = client

    def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        return self._redis

    def get(self, key: str) -> StoreResult:
        try:
            value = self._get_redis().get(key)
            return StoreResult(value=int(value) if value is not None else 0)
        except (redis.RedisError, ValueError) as e:
            return StoreResult.failed(f"{type(e).__name__}: {e}")

    def incr(self, key: str, ttl_seconds: int) -> StoreResult:
        try:
            pipe = self._get_redis().pipeline(transaction=True)
            pipe.incr(key)
            pipe.expire(key, ttl_seconds)
            new_count, _ = pipe.execute()
            return StoreResult(value=int(new_count))
        except (redis.RedisError, ValueError) as e:
            return StoreResult.failed(f"{type(e).__name__}: {e}")

    def delete(self, key: str) -> StoreResult:
        try:
            return StoreResult(value=int(self._get_redis().delete(key)))
        except redis.RedisError as e:
            return StoreResult.failed(f"{type(e).__name__}: {e}")


class InMemoryCounterStore(CounterStore):
    """
    Process-local counters for development.

    Not durable and not shared across processes. A single lock serializes all
    mutations. TTLs are ignored: keys are day-namespaced and the process is
    short-lived.
    """

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._lock = Lock()

    def get(self, key: str) -> StoreResult:
        with self._lock:
            return StoreResult(value=self._counts.get(key, 0))

    def incr(self, key: str, ttl_seconds: int) -> StoreResult:
        with self._lock:
            new_count = self._counts.get(key, 0) + 1
            self._counts[key] = new_count
        logger.debug(f"Dev chat count: {new_count} for {key}")
        return StoreResult(value=new_count)

    def delete(self, key: str) -> StoreResult:
        with self._lock:
            existed = self._counts.pop(key, None) is not None
        return StoreResult(value=int(existed))

    def keys(self):
        with self._lock:
            return list(self._counts.keys())
