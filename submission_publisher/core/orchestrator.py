"""
Submission orchestrator.

Turns one publish action into exactly one post, a canonical record, a daily
index entry and two deferred jobs:

    guard -> create post -> pin-announcement job -> build record
          -> fan-out (flair | canonical record | expire job | daily index)

Nothing before post creation has side effects beyond the admission lock.
Nothing after it is rolled back; failures are reported for reconciliation.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from submission_publisher.config.settings import settings
from submission_publisher.core.admission_guard import AdmissionGuard
from submission_publisher.core.errors import (
    AdmissionDeniedError,
    AnnouncementJobFailedError,
    FanOutFailedError,
    ResourceCreationFailedError,
    SubmissionError,
    UnauthenticatedError,
)
from submission_publisher.integrations.resource_service import ResourceService
from submission_publisher.models.dtos import (
    JobName,
    SubmissionRecord,
    SubmissionRequest,
    SubmissionResult,
)
from submission_publisher.scheduler.client import JobScheduler
from submission_publisher.storage.record_store import RecordStore, daily_index_key, index_day

logger = logging.getLogger(__name__)


class FanOutStep(str, Enum):
    ATTACH_ATTRIBUTE = "attach_attribute"
    PERSIST_RECORD = "persist_record"
    SCHEDULE_EXPIRATION = "schedule_expiration"
    APPEND_DAILY_INDEX = "append_daily_index"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SubmissionOrchestrator:
    """
    Runs the end-to-end submission workflow.

    The four collaborators are injected so that any backend satisfying their
    protocols (Redis or in-memory guard, Postgres or in-memory records, ...)
    can be combined.
    """

    def __init__(
        self,
        guard: AdmissionGuard,
        resource_service: ResourceService,
        scheduler: JobScheduler,
        record_store: RecordStore,
        destination: str = settings.SUBREDDIT_NAME,
        title: str = settings.POST_TITLE,
        preview_content: str = settings.POST_PREVIEW_TEXT,
        post_live_span: timedelta = timedelta(seconds=settings.POST_LIVE_SPAN_SECONDS),
        kind: str = settings.SUBMISSION_KIND,
        clock: Callable[[], datetime] = utc_now,
        prometheus_exporter=None,
    ):
        """
        Args:
            guard: Admission guard preventing duplicate submissions
            resource_service: Creates the post and attaches flair to it
            scheduler: Durable scheduler for the deferred jobs
            record_store: Store for the canonical record and the daily index
            destination: Subreddit the post is created in
            title: Post title
            preview_content: Self-post body shown while the post loads
            post_live_span: Time from creation until the expire-submission job runs
            kind: Tag stored in every record's `kind` field
            clock: Returns the current timezone-aware time
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.guard = guard
        self.resource_service = resource_service
        self.scheduler = scheduler
        self.record_store = record_store
        self.destination = destination
        self.title = title
        self.preview_content = preview_content
        self.post_live_span = post_live_span
        self.kind = kind
        self.clock = clock
        self.prometheus_exporter = prometheus_exporter

    async def submit(self, request: SubmissionRequest) -> SubmissionResult:
        """
        Publish `request.candidate` on behalf of `request.actor_id`.

        Args:
            request: The submission to publish

        Returns:
            The created record and the id of the new post

        Raises:
            UnauthenticatedError: No actor on the request; nothing was called
            AdmissionDeniedError: The actor submitted within the lockout window
            GuardUnavailableError: The lock backend failed
            ResourceCreationFailedError: The post could not be created
            FanOutFailedError: The post exists but follow-up writes failed
        """
        if self.prometheus_exporter:
            with self.prometheus_exporter.time_submission():
                return await self._submit_and_record(request)
        return await self._submit_and_record(request)

    async def _submit_and_record(self, request: SubmissionRequest) -> SubmissionResult:
        try:
            result = await self._submit(request)
        except SubmissionError as e:
            self._record_outcome(e.kind.value)
            raise
        self._record_outcome("completed")
        return result

    def _record_outcome(self, outcome: str) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_submission(outcome)

    async def _submit(self, request: SubmissionRequest) -> SubmissionResult:
        actor_id = request.actor_id
        if not actor_id:
            logger.info("Rejected submission without an authenticated actor")
            raise UnauthenticatedError()

        if not await self.guard.try_acquire(actor_id):
            raise AdmissionDeniedError(actor_id)

        # The lock is left to expire on failure
        try:
            resource_id = await self.resource_service.create(self.title, self.destination, self.preview_content)
        except Exception as e:
            logger.error(f"Failed to create post for actor {actor_id}: {e}", exc_info=True)
            raise ResourceCreationFailedError(actor_id, str(e)) from e
        logger.info(f"Created post {resource_id} for actor {actor_id}")

        created_at = self.clock()
        await self._schedule_announcement(actor_id, resource_id, created_at)

        record = SubmissionRecord(
            payload=request.candidate,
            author_id=actor_id,
            created_at=created_at,
            resource_id=resource_id,
            published=bool(resource_id),
            kind=self.kind,
        )

        failed_steps = await self._fan_out(record, request.attribute_id)
        if failed_steps:
            error = FanOutFailedError(actor_id, resource_id, record, failed_steps)
            logger.error(error.message)
            raise error

        logger.info(f"Submission for actor {actor_id} completed: post {resource_id}")
        return SubmissionResult(record=record, resource_id=resource_id)

    async def _schedule_announcement(self, actor_id: str, resource_id: str, created_at: datetime) -> None:
        try:
            await self.scheduler.schedule(
                JobName.PIN_ANNOUNCEMENT.value,
                {"resource_id": resource_id},
                created_at,
            )
        except Exception as e:
            error = AnnouncementJobFailedError(actor_id, resource_id, str(e))
            logger.warning(error.message, exc_info=True)

    async def _fan_out(
        self, record: SubmissionRecord, attribute_id: Optional[str]
    ) -> Dict[str, BaseException]:
        """
        Run the four independent writes concurrently and wait for all of them.

        Returns:
            The failed steps by name; empty when every step succeeded.
        """
        resource_id = record.resource_id
        steps: Dict[FanOutStep, Awaitable] = {
            FanOutStep.ATTACH_ATTRIBUTE: self.resource_service.attach_attribute(
                resource_id, attribute_id, self.destination
            ),
            FanOutStep.PERSIST_RECORD: self.record_store.put(resource_id, record),
            FanOutStep.SCHEDULE_EXPIRATION: self.scheduler.schedule(
                JobName.EXPIRE_SUBMISSION.value,
                {"resource_id": resource_id, "answer": record.payload.label},
                record.created_at + self.post_live_span,
            ),
            FanOutStep.APPEND_DAILY_INDEX: self.record_store.append_index(
                daily_index_key(record.author_id, index_day(record.created_at)),
                record,
            ),
        }
        results = await asyncio.gather(*steps.values(), return_exceptions=True)

        failed: Dict[str, BaseException] = {}
        for step, result in zip(steps, results):
            if isinstance(result, BaseException):
                logger.error(f"Fan-out step {step.value} failed for post {resource_id}: {result}", exc_info=result)
                failed[step.value] = result
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_fanout_failure(step.value)
        return failed
