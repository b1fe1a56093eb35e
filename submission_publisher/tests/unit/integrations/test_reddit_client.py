from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from submission_publisher.integrations.reddit_client import RedditClient


def make_config(**overrides):
    values = dict(
        REDDIT_CLIENT_ID="id",
        REDDIT_CLIENT_SECRET="secret",
        REDDIT_USERNAME="bot",
        REDDIT_PASSWORD="pw",
        REDDIT_USER_AGENT="submission_publisher/test",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.mark.asyncio
async def test_initialize_requires_credentials():
    client = RedditClient(make_config(REDDIT_CLIENT_SECRET=""))

    with pytest.raises(ValueError, match="Missing Reddit API credentials"):
        await client.initialize()


@pytest.mark.asyncio
async def test_initialize_authenticates_once(mocker):
    reddit = MagicMock()
    reddit.user.me = AsyncMock(return_value=SimpleNamespace(name="bot"))
    reddit_cls = mocker.patch("submission_publisher.integrations.reddit_client.asyncpraw.Reddit", return_value=reddit)
    client = RedditClient(make_config())

    assert await client.initialize() is reddit
    assert await client.initialize() is reddit

    reddit_cls.assert_called_once()
    assert reddit_cls.call_args.kwargs["user_agent"] == "submission_publisher/test"


@pytest.mark.asyncio
async def test_initialize_failure_resets_client(mocker):
    reddit = MagicMock()
    reddit.user.me = AsyncMock(side_effect=Exception("401"))
    reddit.close = AsyncMock()
    mocker.patch("submission_publisher.integrations.reddit_client.asyncpraw.Reddit", return_value=reddit)
    client = RedditClient(make_config())

    with pytest.raises(ValueError, match="authentication failed"):
        await client.initialize()

    reddit.close.assert_awaited_once()
    with pytest.raises(ValueError, match="not initialized"):
        await client.get_submission("abc123")


@pytest.mark.asyncio
async def test_lookups_return_lazy_models(mocker):
    reddit = MagicMock()
    reddit.user.me = AsyncMock(return_value=SimpleNamespace(name="bot"))
    reddit.subreddit = AsyncMock(return_value="subreddit")
    reddit.submission = AsyncMock(return_value="submission")
    reddit.comment = AsyncMock(return_value="comment")
    mocker.patch("submission_publisher.integrations.reddit_client.asyncpraw.Reddit", return_value=reddit)
    client = RedditClient(make_config())
    await client.initialize()

    assert await client.get_subreddit("Pixelary") == "subreddit"
    assert await client.get_submission("abc123") == "submission"
    assert await client.get_comment("c1") == "comment"

    reddit.submission.assert_awaited_once_with("abc123", fetch=False)
    reddit.comment.assert_awaited_once_with("c1", fetch=False)


@pytest.mark.asyncio
async def test_close_releases_session(mocker):
    reddit = MagicMock()
    reddit.user.me = AsyncMock(return_value=SimpleNamespace(name="bot"))
    reddit.close = AsyncMock()
    mocker.patch("submission_publisher.integrations.reddit_client.asyncpraw.Reddit", return_value=reddit)
    client = RedditClient(make_config())
    await client.initialize()

    await client.close()
    await client.close()

    reddit.close.assert_awaited_once()
    with pytest.raises(ValueError, match="not initialized"):
        await client.get_comment("c1")
