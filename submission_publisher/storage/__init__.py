"""Storage backends for the admission guard and submission records."""

from .guard_store import GuardStore, InMemoryGuardStore, RedisGuardStore, create_guard_store
from .record_store import (
    InMemoryRecordStore,
    RecordStore,
    SQLAlchemyRecordStore,
    daily_index_key,
)

__all__ = [
    "GuardStore",
    "InMemoryGuardStore",
    "RedisGuardStore",
    "create_guard_store",
    "InMemoryRecordStore",
    "RecordStore",
    "SQLAlchemyRecordStore",
    "daily_index_key",
]
