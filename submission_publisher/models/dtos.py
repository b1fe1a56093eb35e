"""
Pydantic Data Transfer Objects (DTOs) for the Submission Publisher service.

These models describe what a caller submits, the record persisted for every
published post, and the deferred jobs scheduled around it.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobName(str, Enum):
    """Deferred jobs scheduled by a submission."""
    PIN_ANNOUNCEMENT = "pin-announcement"
    EXPIRE_SUBMISSION = "expire-submission"


class CandidatePayload(BaseModel):
    """
    The content being published.

    `content` is opaque to this service (e.g. the drawing's pixel data); `label`
    and `category` are used for indexing and for the expiry job's answer.
    """
    label: str = Field(..., min_length=1, description="Short label, e.g. the word that was drawn.")
    category: str = Field(..., min_length=1, description="Category or dictionary name the label came from.")
    content: Any = Field(None, description="Opaque content blob.")

    model_config = ConfigDict(frozen=True)


class SubmissionRequest(BaseModel):
    """A user-initiated publish action."""
    actor_id: Optional[str] = Field(None, description="Username of the submitting actor. None when logged out.")
    candidate: CandidatePayload
    attribute_id: Optional[str] = Field(None, description="Flair template id to attach to the post.")


class SubmissionCounters(BaseModel):
    """Aggregate counters. Only downstream processes change these."""
    interactions: int = 0
    participants: int = 0
    resolutions: int = 0
    items: int = 0
    skips: int = 0

    model_config = ConfigDict(frozen=True)


class ActorState(BaseModel):
    """Per-creating-actor counters."""
    interactions: int = 0
    score: int = 0
    resolved: bool = False
    skipped: bool = False

    model_config = ConfigDict(frozen=True)


class SubmissionRecord(BaseModel):
    """
    Durable record of one successful submission.

    Built once, after the post exists, so `resource_id` is always known at
    construction time. Lifecycle flags are `expired`, `resolved` and `published`.
    """
    payload: CandidatePayload
    author_id: str
    created_at: datetime
    resource_id: str
    expired: bool = False
    resolved: bool = False
    published: bool = False
    counters: SubmissionCounters = Field(default_factory=SubmissionCounters)
    actor_state: ActorState = Field(default_factory=ActorState)
    interaction_log: List[Dict[str, Any]] = Field(default_factory=list)
    kind: str = "drawing"

    model_config = ConfigDict(frozen=True)


class ScheduledJob(BaseModel):
    """A unit of work to run at `run_at` (now or later)."""
    name: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    run_at: datetime


class JobHandle(BaseModel):
    """Returned by the scheduler for a job it accepted."""
    job_id: str
    name: str
    run_at: datetime


class SubmissionResult(BaseModel):
    """Successful submission: the record plus the post id to navigate to."""
    record: SubmissionRecord
    resource_id: str
