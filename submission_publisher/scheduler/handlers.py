"""
Handlers for deferred jobs, registered by job name.

A handler receives the job payload and a `JobContext` holding the
collaborators it needs. Raising marks the attempt as failed; the runner
decides whether to retry. Changes a handler makes to the payload are saved
with a retried job, so later attempts can skip steps that already happened.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict

from submission_publisher.integrations.resource_service import ResourceService
from submission_publisher.models.dtos import JobName
from submission_publisher.storage.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class JobContext:
    resource_service: ResourceService
    record_store: RecordStore
    announcement_text: str


JobHandler = Callable[[Dict[str, Any], JobContext], Awaitable[None]]

HANDLERS: Dict[str, JobHandler] = {}


def register_handler(name: str) -> Callable[[JobHandler], JobHandler]:
    """Decorator registering `func` as the handler for jobs named `name`."""
    def decorator(func: JobHandler) -> JobHandler:
        if name in HANDLERS:
            raise ValueError(f"A handler is already registered for job '{name}'")
        HANDLERS[name] = func
        return func
    return decorator


def get_handler(name: str) -> JobHandler:
    """
    Raises:
        KeyError: If no handler is registered under `name`
    """
    return HANDLERS[name]


@register_handler(JobName.PIN_ANNOUNCEMENT.value)
async def pin_announcement(payload: Dict[str, Any], context: JobContext) -> None:
    resource_id = payload["resource_id"]
    # A comment id in the payload means an earlier attempt already replied
    comment_id = payload.get("comment_id")
    if comment_id is None:
        comment_id = await context.resource_service.post_announcement(resource_id, context.announcement_text)
        payload["comment_id"] = comment_id
    await context.resource_service.pin_comment(comment_id)
    logger.info(f"Announcement {comment_id} pinned on post {resource_id}")


@register_handler(JobName.EXPIRE_SUBMISSION.value)
async def expire_submission(payload: Dict[str, Any], context: JobContext) -> None:
    resource_id = payload["resource_id"]
    expired = await context.record_store.mark_expired(resource_id)
    if expired:
        logger.info(f"Expired post {resource_id} (answer: {payload.get('answer')})")
    else:
        # Nothing to expire is a terminal state, not a reason to retry
        logger.warning(f"Post {resource_id} has no submission record; nothing to expire")
