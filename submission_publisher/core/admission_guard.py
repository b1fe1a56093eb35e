"""Single-flight admission guard keyed by actor identity."""

import logging

from submission_publisher.config.settings import settings
from submission_publisher.core.errors import GuardUnavailableError
from submission_publisher.storage.guard_store import GuardStore

logger = logging.getLogger(__name__)

LOCK_VALUE = "true"


def lock_key(actor_id: str) -> str:
    return f"locked:{actor_id}"


class AdmissionGuard:
    """
    Time-bounded duplicate-submission lock.

    There is no release step: the lock expires after the lockout window, so a
    crash mid-workflow only rate-limits the actor.
    """

    def __init__(self, store: GuardStore, lockout_seconds: float = settings.LOCKOUT_PERIOD_SECONDS):
        """
        Args:
            store: Backend providing an atomic set-if-absent with expiry
            lockout_seconds: How long an acquired lock blocks the actor
        """
        self.store = store
        self.lockout_seconds = lockout_seconds

    async def try_acquire(self, actor_id: str) -> bool:
        """
        Try to take the actor's lock.

        Args:
            actor_id: Identity of the submitting actor

        Returns:
            True if the lock was acquired, False if it is already held

        Raises:
            GuardUnavailableError: If the backing store failed
        """
        key = lock_key(actor_id)
        try:
            acquired = await self.store.set_if_absent(key, LOCK_VALUE, self.lockout_seconds)
        except Exception as e:
            logger.error(f"Admission guard backend failed for {key}: {e}", exc_info=True)
            raise GuardUnavailableError(actor_id, str(e)) from e

        if acquired:
            logger.debug(f"Acquired admission lock {key} for {self.lockout_seconds}s")
        else:
            logger.info(f"Admission lock {key} already held, rejecting duplicate submission")
        return acquired
