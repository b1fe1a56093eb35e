from unittest.mock import AsyncMock, MagicMock

import pytest

from submission_publisher.core.admission_guard import LOCK_VALUE, AdmissionGuard, lock_key
from submission_publisher.core.errors import GuardUnavailableError


def test_lock_key_format():
    assert lock_key("u1") == "locked:u1"


@pytest.mark.asyncio
async def test_second_acquire_in_immediate_succession_fails(guard):
    assert await guard.try_acquire("u1") is True
    assert await guard.try_acquire("u1") is False


@pytest.mark.asyncio
async def test_acquire_succeeds_again_after_lockout(guard, clock):
    assert await guard.try_acquire("u1") is True
    clock.advance(9.9)
    assert await guard.try_acquire("u1") is False
    clock.advance(0.2)
    assert await guard.try_acquire("u1") is True


@pytest.mark.asyncio
async def test_locks_are_per_actor(guard):
    assert await guard.try_acquire("u1") is True
    assert await guard.try_acquire("u2") is True


@pytest.mark.asyncio
async def test_acquire_issues_single_conditional_set():
    store = MagicMock()
    store.set_if_absent = AsyncMock(return_value=True)
    guard = AdmissionGuard(store, lockout_seconds=10)

    await guard.try_acquire("u1")

    store.set_if_absent.assert_awaited_once_with("locked:u1", LOCK_VALUE, 10)


@pytest.mark.asyncio
async def test_store_failure_raises_guard_unavailable():
    store = MagicMock()
    store.set_if_absent = AsyncMock(side_effect=TimeoutError("redis timed out"))
    guard = AdmissionGuard(store, lockout_seconds=10)

    with pytest.raises(GuardUnavailableError) as exc_info:
        await guard.try_acquire("u1")

    assert exc_info.value.actor_id == "u1"
    assert isinstance(exc_info.value.__cause__, TimeoutError)
