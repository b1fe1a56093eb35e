"""Authenticated asyncpraw session used by the resource service."""

import logging
from typing import Optional

import asyncpraw
from asyncpraw.models import Comment, Submission, Subreddit

from submission_publisher.config.settings import Settings

logger = logging.getLogger(__name__)


class RedditClient:
    """Lazily authenticated Reddit session. Lookups return lazy models (no fetch)."""

    def __init__(self, config: Settings):
        self.config = config
        self._reddit: Optional[asyncpraw.Reddit] = None

    async def initialize(self) -> asyncpraw.Reddit:
        """
        Authenticate on first use.

        Raises:
            ValueError: If credentials are missing or rejected
        """
        if self._reddit:
            return self._reddit

        if not all([
            self.config.REDDIT_CLIENT_ID,
            self.config.REDDIT_CLIENT_SECRET,
            self.config.REDDIT_USERNAME,
            self.config.REDDIT_PASSWORD,
        ]):
            raise ValueError("Missing Reddit API credentials")

        reddit = asyncpraw.Reddit(
            client_id=self.config.REDDIT_CLIENT_ID,
            client_secret=self.config.REDDIT_CLIENT_SECRET,
            username=self.config.REDDIT_USERNAME,
            password=self.config.REDDIT_PASSWORD,
            user_agent=self.config.REDDIT_USER_AGENT,
        )
        try:
            me = await reddit.user.me()
        except Exception as e:
            await reddit.close()
            logger.error(f"Reddit authentication failed: {e}")
            raise ValueError(f"Reddit authentication failed: {e}") from e

        logger.info(f"Authenticated to Reddit as {me.name}")
        self._reddit = reddit
        return reddit

    def _require(self) -> asyncpraw.Reddit:
        if not self._reddit:
            raise ValueError("Reddit client not initialized")
        return self._reddit

    async def get_subreddit(self, subreddit_name: str) -> Subreddit:
        return await self._require().subreddit(subreddit_name)

    async def get_submission(self, submission_id: str) -> Submission:
        return await self._require().submission(submission_id, fetch=False)

    async def get_comment(self, comment_id: str) -> Comment:
        return await self._require().comment(comment_id, fetch=False)

    async def close(self) -> None:
        if self._reddit:
            logger.info("Closing Reddit client")
            await self._reddit.close()
            self._reddit = None
