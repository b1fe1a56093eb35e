"""Primary resource service: creates posts and attaches metadata to them."""

import logging
from typing import Optional, Protocol

from submission_publisher.config.settings import settings
from submission_publisher.integrations.reddit_client import RedditClient
from submission_publisher.utils.retry import with_exponential_backoff

logger = logging.getLogger(__name__)

_idempotent_retry = with_exponential_backoff(
    max_retries=settings.API_MAX_RETRIES,
    initial_backoff=settings.API_INITIAL_BACKOFF_SECONDS,
)


class ResourceService(Protocol):
    """A protocol for services that own the durable primary resource."""

    async def create(self, title: str, destination: str, preview_content: str) -> str:
        """Create the resource and return its id. Called at most once per submission."""
        ...

    async def attach_attribute(self, resource_id: str, attribute_id: Optional[str], destination: str) -> None:
        ...

    async def post_announcement(self, resource_id: str, text: str) -> str:
        """Post `text` as a comment on the resource and return the comment id."""
        ...

    async def pin_comment(self, comment_id: str) -> None:
        """Pin an existing comment to the top of its post. Safe to repeat."""
        ...


class RedditResourceService:
    """Resource service backed by Reddit self posts."""

    def __init__(self, client: RedditClient):
        self.client = client

    async def create(self, title: str, destination: str, preview_content: str) -> str:
        """
        Submit a self post to `destination`.

        Not retried: a timed-out submit may still have created the post.

        Args:
            title: Post title
            destination: Subreddit name
            preview_content: Self-post body shown until the post is rendered

        Returns:
            The new post's id
        """
        await self.client.initialize()
        subreddit = await self.client.get_subreddit(destination)
        submission = await subreddit.submit(title, selftext=preview_content)
        logger.info(f"Created post {submission.id} in r/{destination}")
        return submission.id

    @_idempotent_retry
    async def attach_attribute(self, resource_id: str, attribute_id: Optional[str], destination: str) -> None:
        if attribute_id is None:
            logger.debug(f"No flair requested for post {resource_id}")
            return
        await self.client.initialize()
        submission = await self.client.get_submission(resource_id)
        await submission.flair.select(attribute_id)
        logger.info(f"Set flair {attribute_id} on post {resource_id} in r/{destination}")

    async def post_announcement(self, resource_id: str, text: str) -> str:
        """
        Reply to the post with `text`.

        Not retried: a repeated reply would post a second comment.
        """
        await self.client.initialize()
        submission = await self.client.get_submission(resource_id)
        comment = await submission.reply(text)
        logger.info(f"Posted announcement comment {comment.id} on post {resource_id}")
        return comment.id

    @_idempotent_retry
    async def pin_comment(self, comment_id: str) -> None:
        await self.client.initialize()
        comment = await self.client.get_comment(comment_id)
        await comment.mod.distinguish(sticky=True)
        logger.info(f"Pinned comment {comment_id}")
