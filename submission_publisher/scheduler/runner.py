"""
Job runner: executes due jobs from the `scheduled_jobs` table.

Several runners may poll the same table; claiming uses
`FOR UPDATE SKIP LOCKED` so each job is handed to exactly one of them.
A claim is a lease: a job left `running` longer than the lease (its worker
died or could not record the outcome) is claimed again.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from submission_publisher.config.settings import settings
from submission_publisher.models import ScheduledJobORM
from submission_publisher.models.scheduled_job_orm import (
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FAILED,
    JOB_STATUS_PENDING,
    JOB_STATUS_RUNNING,
)
from submission_publisher.scheduler.handlers import HANDLERS, JobContext
from submission_publisher.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 30


async def claim_due_jobs(
    session: AsyncSession,
    batch_size: int,
    lease_seconds: float = settings.JOB_LEASE_SECONDS,
) -> List[ScheduledJobORM]:
    """
    Atomically claim up to `batch_size` jobs that are due.

    A job is due when it is pending and its `run_at` has passed, or when it
    is running and was last touched more than `lease_seconds` ago.

    Claimed jobs move to `running` and have their attempt count incremented.
    The caller commits the session.
    """
    due_jobs_cte = (
        select(ScheduledJobORM.id)
        .where(or_(
            and_(ScheduledJobORM.status == JOB_STATUS_PENDING, ScheduledJobORM.run_at <= func.now()),
            and_(
                ScheduledJobORM.status == JOB_STATUS_RUNNING,
                ScheduledJobORM.updated_at < func.now() - timedelta(seconds=lease_seconds),
            ),
        ))
        .order_by(ScheduledJobORM.run_at.asc())
        .limit(batch_size)
        .with_for_update(skip_locked=True)
        .cte("due_jobs_cte")
    )
    stmt = (
        update(ScheduledJobORM)
        .where(ScheduledJobORM.id.in_(select(due_jobs_cte.c.id)))
        .values(
            status=JOB_STATUS_RUNNING,
            attempts=ScheduledJobORM.attempts + 1,
            updated_at=func.now(),
        )
        .returning(ScheduledJobORM)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


class JobRunner:
    """Polls for due jobs and dispatches them to their registered handlers."""

    def __init__(
        self,
        context: JobContext,
        db_session: Optional[AsyncSession] = None,
        batch_size: int = settings.JOB_BATCH_SIZE,
        max_attempts: int = settings.JOB_MAX_ATTEMPTS,
        poll_interval: float = settings.JOB_POLL_INTERVAL_SECONDS,
        lease_seconds: float = settings.JOB_LEASE_SECONDS,
        prometheus_exporter=None,
    ):
        self.context = context
        self._shared_session = db_session
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.lease_seconds = lease_seconds
        self.prometheus_exporter = prometheus_exporter

    async def _set_status(
        self,
        job_id,
        status: str,
        last_error: Optional[str] = None,
        run_at: Optional[datetime] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        values = {"status": status, "last_error": last_error, "updated_at": func.now()}
        if run_at is not None:
            values["run_at"] = run_at
        if payload is not None:
            values["payload"] = payload
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            await session.execute(
                update(ScheduledJobORM).where(ScheduledJobORM.id == job_id).values(**values)
            )
            await session.commit()

    def _record(self, job_name: str, status: str) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_job_executed(job_name, status)

    async def run_job(self, job: ScheduledJobORM) -> bool:
        """
        Execute one claimed job and persist its outcome.

        Returns:
            True if the handler completed successfully.
        """
        handler = HANDLERS.get(job.name)
        if handler is None:
            logger.error(f"No handler registered for job {job.name} (id={job.id}); marking failed")
            await self._set_status(job.id, JOB_STATUS_FAILED, last_error=f"Unknown job name: {job.name}")
            self._record(job.name, JOB_STATUS_FAILED)
            return False

        if job.attempts > self.max_attempts:
            # Reclaimed after its lease ran out on the final attempt
            logger.error(f"Job {job.name} (id={job.id}) was abandoned on its final attempt; marking failed")
            await self._set_status(job.id, JOB_STATUS_FAILED, last_error="Lease expired on final attempt")
            self._record(job.name, JOB_STATUS_FAILED)
            return False

        payload = dict(job.payload or {})
        try:
            await handler(payload, self.context)
        except Exception as e:
            if job.attempts >= self.max_attempts:
                logger.error(
                    f"Job {job.name} (id={job.id}) failed on attempt {job.attempts}/{self.max_attempts}, giving up: {e}",
                    exc_info=True,
                )
                await self._set_status(job.id, JOB_STATUS_FAILED, last_error=str(e))
                self._record(job.name, JOB_STATUS_FAILED)
            else:
                retry_at = datetime.now(timezone.utc) + timedelta(seconds=RETRY_DELAY_SECONDS * job.attempts)
                logger.warning(
                    f"Job {job.name} (id={job.id}) failed on attempt {job.attempts}/{self.max_attempts}: {e}. "
                    f"Retrying at {retry_at.isoformat()}"
                )
                await self._set_status(
                    job.id, JOB_STATUS_PENDING, last_error=str(e), run_at=retry_at, payload=payload
                )
                self._record(job.name, "retry")
            return False

        await self._set_status(job.id, JOB_STATUS_COMPLETED)
        self._record(job.name, JOB_STATUS_COMPLETED)
        logger.info(f"Job {job.name} (id={job.id}) completed")
        return True

    async def run_once(self) -> int:
        """
        Claim one batch of due jobs and run them concurrently.

        Returns:
            The number of jobs that completed successfully.
        """
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            jobs = await claim_due_jobs(session, self.batch_size, self.lease_seconds)
            await session.commit()

        if not jobs:
            logger.debug("No due jobs")
            return 0

        logger.info(f"Claimed {len(jobs)} due jobs")
        results = await asyncio.gather(*(self.run_job(job) for job in jobs), return_exceptions=True)
        for job, result in zip(jobs, results):
            if isinstance(result, BaseException):
                # Left `running`; claimed again once its lease expires
                logger.error(f"Could not record outcome of job {job.name} (id={job.id}): {result}")
        completed = sum(1 for r in results if r is True)
        logger.info(f"Job batch finished. Completed: {completed}, Not completed: {len(jobs) - completed}")
        return completed

    async def run_forever(self) -> None:
        logger.info(f"Job runner starting. Poll interval: {self.poll_interval}s")
        try:
            while True:
                try:
                    await self.run_once()
                except Exception as e:
                    logger.error(f"Error in job runner cycle: {e}", exc_info=True)
                await asyncio.sleep(self.poll_interval)
        except asyncio.CancelledError:
            logger.info("Job runner cancelled. Shutting down.")
            raise
