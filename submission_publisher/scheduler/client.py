"""
Job scheduler clients.

A scheduled job is persisted before `schedule` returns, so it runs even if the
scheduling process is gone by the time the job is due. A `run_at` in the past
means "as soon as possible".
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from submission_publisher.models import ScheduledJobORM
from submission_publisher.models.dtos import JobHandle, ScheduledJob
from submission_publisher.models.scheduled_job_orm import JOB_STATUS_PENDING
from submission_publisher.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)


class JobScheduler(Protocol):
    """A protocol for "run job `name` with `payload` at `run_at`" backends."""

    async def schedule(self, name: str, payload: Dict[str, Any], run_at: datetime) -> JobHandle:
        ...


class DatabaseJobScheduler:
    """Schedules jobs as rows in the `scheduled_jobs` table."""

    def __init__(self, session: Optional[AsyncSession] = None, prometheus_exporter=None):
        """
        Args:
            session: Optional AsyncSession. If None, each call uses its own session.
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self._shared_session = session
        self.prometheus_exporter = prometheus_exporter

    async def schedule(self, name: str, payload: Dict[str, Any], run_at: datetime) -> JobHandle:
        job_id = uuid.uuid4()
        async with get_db_session_context_manager(existing_session=self._shared_session) as session:
            try:
                session.add(ScheduledJobORM(
                    id=job_id,
                    name=name,
                    payload=payload,
                    run_at=run_at,
                    status=JOB_STATUS_PENDING,
                    attempts=0,
                ))
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Database error scheduling job {name}: {e}", exc_info=True)
                await session.rollback()
                raise

        logger.info(f"Scheduled job {name} (id={job_id}) to run at {run_at.isoformat()}")
        if self.prometheus_exporter:
            self.prometheus_exporter.record_job_scheduled(name)
        return JobHandle(job_id=str(job_id), name=name, run_at=run_at)


class InMemoryJobScheduler:
    """
    Keeps scheduled jobs in a list.

    Jobs are lost with the process, so use this for development and tests only.
    """

    def __init__(self):
        self.jobs: List[ScheduledJob] = []
        self.handles: List[JobHandle] = []

    async def schedule(self, name: str, payload: Dict[str, Any], run_at: datetime) -> JobHandle:
        self.jobs.append(ScheduledJob(name=name, payload=payload, run_at=run_at))
        handle = JobHandle(job_id=str(uuid.uuid4()), name=name, run_at=run_at)
        self.handles.append(handle)
        logger.info(f"[LOCAL] Scheduled job {name} (id={handle.job_id}) to run at {run_at.isoformat()}")
        return handle

    def jobs_named(self, name: str) -> List[ScheduledJob]:
        return [job for job in self.jobs if job.name == name]

    def due(self, now: datetime) -> List[ScheduledJob]:
        return [job for job in self.jobs if job.run_at <= now]
