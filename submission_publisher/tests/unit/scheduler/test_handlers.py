from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from submission_publisher.scheduler.handlers import (
    HANDLERS,
    JobContext,
    get_handler,
    register_handler,
)


@pytest.fixture
def job_context():
    resource_service = MagicMock()
    resource_service.post_announcement = AsyncMock(return_value="comment1")
    resource_service.pin_comment = AsyncMock()
    record_store = MagicMock()
    record_store.mark_expired = AsyncMock(return_value=True)
    return JobContext(
        resource_service=resource_service,
        record_store=record_store,
        announcement_text="Guess the drawing!",
    )


def test_builtin_handlers_are_registered():
    assert "pin-announcement" in HANDLERS
    assert "expire-submission" in HANDLERS


@pytest.mark.asyncio
async def test_pin_announcement_posts_configured_text_then_pins(job_context):
    payload = {"resource_id": "post1"}

    await get_handler("pin-announcement")(payload, job_context)

    job_context.resource_service.post_announcement.assert_awaited_once_with("post1", "Guess the drawing!")
    job_context.resource_service.pin_comment.assert_awaited_once_with("comment1")
    assert payload["comment_id"] == "comment1"


@pytest.mark.asyncio
async def test_pin_announcement_keeps_comment_id_when_pin_fails(job_context):
    job_context.resource_service.pin_comment.side_effect = PermissionError("not a moderator")
    payload = {"resource_id": "post1"}

    with pytest.raises(PermissionError):
        await get_handler("pin-announcement")(payload, job_context)

    assert payload["comment_id"] == "comment1"


@pytest.mark.asyncio
async def test_pin_announcement_skips_reply_already_posted(job_context):
    await get_handler("pin-announcement")({"resource_id": "post1", "comment_id": "c9"}, job_context)

    job_context.resource_service.post_announcement.assert_not_awaited()
    job_context.resource_service.pin_comment.assert_awaited_once_with("c9")


@pytest.mark.asyncio
async def test_expire_submission_marks_record_expired(job_context):
    await get_handler("expire-submission")({"resource_id": "post1", "answer": "cat"}, job_context)

    job_context.record_store.mark_expired.assert_awaited_once_with("post1")


@pytest.mark.asyncio
async def test_expire_submission_without_record_does_not_raise(job_context):
    job_context.record_store.mark_expired.return_value = False

    await get_handler("expire-submission")({"resource_id": "gone", "answer": "cat"}, job_context)


def test_register_handler_rejects_duplicates():
    with patch.dict(HANDLERS, clear=False):
        @register_handler("test-job")
        async def first(payload, context):
            return None

        assert HANDLERS["test-job"] is first
        with pytest.raises(ValueError):
            @register_handler("test-job")
            async def second(payload, context):
                return None
    assert "test-job" not in HANDLERS
