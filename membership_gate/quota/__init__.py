"""
Daily AI chat quota ledger.
Counters are keyed per user, lesson and calendar day and shared across requests.
"""

from .models import ChatLimitTable, QuotaResult, StoreResult, Usage
from .stores import CounterStore, InMemoryCounterStore, RedisCounterStore
from .manager import QuotaLedger

__all__ = [
    "ChatLimitTable",
    "QuotaResult",
    "StoreResult",
    "Usage",
    "CounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "QuotaLedger",
]
