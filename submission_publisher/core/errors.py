"""
Error taxonomy for the submission workflow.

Failures before the post is created leave nothing behind and can be retried
as soon as the cause is fixed. Failures after it are not rolled back: the
error reports what is missing so an external reconciliation job can repair it.
"""

from enum import Enum
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from submission_publisher.models.dtos import SubmissionRecord


class SubmissionErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    ADMISSION_DENIED = "admission_denied"
    GUARD_UNAVAILABLE = "guard_unavailable"
    RESOURCE_CREATION_FAILED = "resource_creation_failed"
    FAN_OUT_FAILED = "fan_out_failed"
    ANNOUNCEMENT_JOB_FAILED = "announcement_job_failed"


class NoticeSeverity(str, Enum):
    """How loudly the caller should surface the failure."""
    INFO = "info"
    ERROR = "error"


class SubmissionError(Exception):
    """Base exception for every submission workflow failure."""

    kind: SubmissionErrorKind
    severity: NoticeSeverity = NoticeSeverity.ERROR
    default_notice: str = "Something went wrong while posting"

    def __init__(
        self,
        message: str,
        actor_id: Optional[str] = None,
        resource_id: Optional[str] = None,
        user_notice: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.actor_id = actor_id
        self.resource_id = resource_id
        self.user_notice = user_notice or self.default_notice

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "severity": self.severity.value,
            "user_notice": self.user_notice,
            "actor_id": self.actor_id,
            "resource_id": self.resource_id,
        }


# ─── Before the post exists: no side effects ────────────────────

class UnauthenticatedError(SubmissionError):
    """No actor identity on the request."""
    kind = SubmissionErrorKind.UNAUTHENTICATED
    severity = NoticeSeverity.INFO
    default_notice = "Please log in to post"

    def __init__(self):
        super().__init__("Submission requires an authenticated actor")


class AdmissionDeniedError(SubmissionError):
    """The actor's lock is held by a concurrent or very recent submission."""
    kind = SubmissionErrorKind.ADMISSION_DENIED
    severity = NoticeSeverity.INFO
    default_notice = "Your drawing is already being posted"

    def __init__(self, actor_id: str):
        super().__init__(f"Admission lock already held for actor '{actor_id}'", actor_id=actor_id)


class GuardUnavailableError(SubmissionError):
    """The lock backend failed. Not the same as a duplicate submission."""
    kind = SubmissionErrorKind.GUARD_UNAVAILABLE
    default_notice = "Posting is temporarily unavailable, please try again"

    def __init__(self, actor_id: str, reason: str):
        super().__init__(f"Admission guard unavailable for actor '{actor_id}': {reason}", actor_id=actor_id)


class ResourceCreationFailedError(SubmissionError):
    """The post could not be created. The admission lock stays held until it expires."""
    kind = SubmissionErrorKind.RESOURCE_CREATION_FAILED
    default_notice = "Your drawing could not be posted"

    def __init__(self, actor_id: str, reason: str):
        super().__init__(f"Failed to create post for actor '{actor_id}': {reason}", actor_id=actor_id)


# ─── After the post exists: irreversible ────────────────────────

class FanOutFailedError(SubmissionError):
    """
    The post exists but one or more follow-up writes failed.

    `failed_steps` maps each failed step name to its exception; `record` is the
    record the workflow tried to persist.
    """
    kind = SubmissionErrorKind.FAN_OUT_FAILED
    default_notice = "Your drawing was posted but some details could not be saved"

    def __init__(
        self,
        actor_id: str,
        resource_id: str,
        record: "SubmissionRecord",
        failed_steps: Dict[str, BaseException],
    ):
        steps = ", ".join(sorted(failed_steps))
        super().__init__(
            f"Post '{resource_id}' created but fan-out steps failed: {steps}",
            actor_id=actor_id,
            resource_id=resource_id,
        )
        self.record = record
        self.failed_steps = failed_steps

    @property
    def failed_step_names(self) -> List[str]:
        return sorted(self.failed_steps)

    def to_dict(self) -> Dict[str, Optional[str]]:
        data = super().to_dict()
        data["failed_steps"] = ",".join(self.failed_step_names)
        return data


class AnnouncementJobFailedError(SubmissionError):
    """Scheduling the pinned announcement failed. Logged, never raised to the caller."""
    kind = SubmissionErrorKind.ANNOUNCEMENT_JOB_FAILED
    default_notice = ""

    def __init__(self, actor_id: str, resource_id: str, reason: str):
        super().__init__(
            f"Failed to schedule announcement for post '{resource_id}': {reason}",
            actor_id=actor_id,
            resource_id=resource_id,
        )
