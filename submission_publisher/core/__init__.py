from .admission_guard import AdmissionGuard
from .errors import (
    AdmissionDeniedError,
    AnnouncementJobFailedError,
    FanOutFailedError,
    GuardUnavailableError,
    ResourceCreationFailedError,
    SubmissionError,
    SubmissionErrorKind,
    UnauthenticatedError,
)
from .notices import Notice, notice_for
from .orchestrator import FanOutStep, SubmissionOrchestrator

__all__ = [
    "AdmissionGuard",
    "AdmissionDeniedError",
    "AnnouncementJobFailedError",
    "FanOutFailedError",
    "GuardUnavailableError",
    "ResourceCreationFailedError",
    "SubmissionError",
    "SubmissionErrorKind",
    "UnauthenticatedError",
    "Notice",
    "notice_for",
    "FanOutStep",
    "SubmissionOrchestrator",
]
