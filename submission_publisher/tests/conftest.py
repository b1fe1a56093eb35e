"""Shared fixtures: in-memory collaborators and a controllable clock."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytest

from submission_publisher.core.admission_guard import AdmissionGuard
from submission_publisher.core.orchestrator import SubmissionOrchestrator
from submission_publisher.models.dtos import CandidatePayload, SubmissionRequest
from submission_publisher.scheduler.client import InMemoryJobScheduler
from submission_publisher.storage.guard_store import InMemoryGuardStore
from submission_publisher.storage.record_store import InMemoryRecordStore

LOCKOUT_SECONDS = 10
POST_LIVE_SPAN = timedelta(days=5)


class FakeClock:
    """Drives both the guard's monotonic expiry and the orchestrator's wall clock."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.current.timestamp()

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakeResourceService:
    """Records every call; set `create_error` or `attach_error` to make a call fail."""

    def __init__(self):
        self.created: List[Tuple[str, str, str]] = []
        self.attached: List[Tuple[str, Optional[str], str]] = []
        self.announcements: List[Tuple[str, str]] = []
        self.pinned: List[str] = []
        self.create_error: Optional[Exception] = None
        self.attach_error: Optional[Exception] = None

    async def create(self, title: str, destination: str, preview_content: str) -> str:
        if self.create_error is not None:
            raise self.create_error
        self.created.append((title, destination, preview_content))
        return f"post{len(self.created)}"

    async def attach_attribute(self, resource_id: str, attribute_id: Optional[str], destination: str) -> None:
        if self.attach_error is not None:
            raise self.attach_error
        self.attached.append((resource_id, attribute_id, destination))

    async def post_announcement(self, resource_id: str, text: str) -> str:
        self.announcements.append((resource_id, text))
        return f"comment{len(self.announcements)}"

    async def pin_comment(self, comment_id: str) -> None:
        self.pinned.append(comment_id)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def guard_store(clock):
    return InMemoryGuardStore(clock=clock.monotonic)


@pytest.fixture
def guard(guard_store):
    return AdmissionGuard(guard_store, lockout_seconds=LOCKOUT_SECONDS)


@pytest.fixture
def resource_service():
    return FakeResourceService()


@pytest.fixture
def job_scheduler():
    return InMemoryJobScheduler()


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def orchestrator(guard, resource_service, job_scheduler, record_store, clock):
    return SubmissionOrchestrator(
        guard=guard,
        resource_service=resource_service,
        scheduler=job_scheduler,
        record_store=record_store,
        destination="Pixelary",
        title="What is this?",
        preview_content="Loading drawing...",
        post_live_span=POST_LIVE_SPAN,
        kind="drawing",
        clock=clock,
    )


@pytest.fixture
def submission_request():
    return SubmissionRequest(
        actor_id="u1",
        candidate=CandidatePayload(label="cat", category="animals", content={"pixels": [0, 1, 1, 0]}),
        attribute_id="flair-123",
    )
