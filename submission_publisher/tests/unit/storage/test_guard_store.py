from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from submission_publisher.storage.guard_store import (
    InMemoryGuardStore,
    RedisGuardStore,
    create_guard_store,
)


@pytest.mark.asyncio
async def test_in_memory_set_if_absent_respects_ttl(clock):
    store = InMemoryGuardStore(clock=clock.monotonic)

    assert await store.set_if_absent("locked:u1", "true", 10) is True
    assert await store.set_if_absent("locked:u1", "true", 10) is False
    assert store.get("locked:u1") == "true"

    clock.advance(10)
    assert store.get("locked:u1") is None
    assert await store.set_if_absent("locked:u1", "true", 10) is True


@pytest.mark.asyncio
async def test_redis_set_if_absent_uses_nx_with_millisecond_expiry():
    client = AsyncMock()
    client.set.return_value = True
    store = RedisGuardStore("redis://localhost:6379/0", client=client)

    assert await store.set_if_absent("locked:u1", "true", 10) is True
    client.set.assert_awaited_once_with("locked:u1", "true", nx=True, px=10000)


@pytest.mark.asyncio
async def test_redis_set_if_absent_returns_false_when_key_exists():
    client = AsyncMock()
    client.set.return_value = None
    store = RedisGuardStore("redis://localhost:6379/0", client=client)

    assert await store.set_if_absent("locked:u1", "true", 10) is False


@pytest.mark.asyncio
async def test_redis_errors_propagate():
    client = AsyncMock()
    client.set.side_effect = ConnectionError("connection refused")
    store = RedisGuardStore("redis://localhost:6379/0", client=client)

    with pytest.raises(ConnectionError):
        await store.set_if_absent("locked:u1", "true", 10)


@pytest.mark.asyncio
async def test_redis_close_releases_client():
    client = AsyncMock()
    store = RedisGuardStore("redis://localhost:6379/0", client=client)

    await store.close()

    client.aclose.assert_awaited_once()


def test_create_guard_store_selects_backend():
    assert isinstance(create_guard_store(SimpleNamespace(GUARD_BACKEND="memory")), InMemoryGuardStore)
    redis_store = create_guard_store(SimpleNamespace(GUARD_BACKEND="Redis", REDIS_URL="redis://cache:6379/1"))
    assert isinstance(redis_store, RedisGuardStore)
    assert redis_store.redis_url == "redis://cache:6379/1"


def test_create_guard_store_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_guard_store(SimpleNamespace(GUARD_BACKEND="memcached"))
