"""
Models package for the Submission Publisher service.

This package contains SQLAlchemy ORM models and Pydantic DTOs.
"""

# Ensure all ORM models are registered with the Base metadata when this package is imported.
from .base import Base
from .daily_submission_orm import DailySubmissionORM
from .scheduled_job_orm import ScheduledJobORM
from .submission_record_orm import SubmissionRecordORM

from .dtos import (
    ActorState,
    CandidatePayload,
    JobHandle,
    JobName,
    ScheduledJob,
    SubmissionCounters,
    SubmissionRecord,
    SubmissionRequest,
    SubmissionResult,
)

__all__ = [
    # Base
    "Base",
    # ORMs
    "DailySubmissionORM",
    "ScheduledJobORM",
    "SubmissionRecordORM",
    # DTOs
    "ActorState",
    "CandidatePayload",
    "JobHandle",
    "JobName",
    "ScheduledJob",
    "SubmissionCounters",
    "SubmissionRecord",
    "SubmissionRequest",
    "SubmissionResult",
]
