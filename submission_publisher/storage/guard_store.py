"""Key-value backends offering an atomic set-if-absent with expiry."""

import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis.asyncio as redis

from submission_publisher.config.settings import Settings

logger = logging.getLogger(__name__)


class GuardStore(Protocol):
    """
    A protocol for stores that back the admission guard.

    Implementations must perform the existence check and the write as one
    atomic operation.
    """

    async def set_if_absent(self, key: str, value: str, ttl_seconds: float) -> bool:
        """
        Set `key` to `value` with an expiry, only if the key is absent.

        Returns:
            True if the value was written, False if the key already existed.
        """
        ...


class RedisGuardStore:
    """Guard store backed by Redis `SET key value NX PX ttl`."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self._client = client

    @property
    def client(self) -> redis.Redis:
        """Lazy initialization of the Redis client."""
        if self._client is None:
            logger.info("Connecting admission guard to Redis")
            self._client = redis.Redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    async def set_if_absent(self, key: str, value: str, ttl_seconds: float) -> bool:
        result = await self.client.set(key, value, nx=True, px=int(ttl_seconds * 1000))
        # redis-py returns True when written and None when NX blocked the write
        return bool(result)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class InMemoryGuardStore:
    """
    Process-local guard store for development and tests.

    The check and the write run without an await in between, so they are
    atomic with respect to other tasks on the same event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    async def set_if_absent(self, key: str, value: str, ttl_seconds: float) -> bool:
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None and entry[1] > now:
            return False
        self._entries[key] = (value, now + ttl_seconds)
        return True

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None or entry[1] <= self._clock():
            return None
        return entry[0]

    async def close(self) -> None:
        self._entries.clear()


def create_guard_store(config: Settings):
    """Build the guard store selected by `GUARD_BACKEND`."""
    backend = config.GUARD_BACKEND.lower()
    if backend == "redis":
        return RedisGuardStore(config.REDIS_URL)
    elif backend == "memory":
        logger.warning("Using in-memory admission guard; locks are not shared between processes")
        return InMemoryGuardStore()
    else:
        raise ValueError(f"Unknown GUARD_BACKEND: {config.GUARD_BACKEND}")
