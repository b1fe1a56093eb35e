from .reddit_client import RedditClient
from .resource_service import RedditResourceService, ResourceService

__all__ = ["RedditClient", "RedditResourceService", "ResourceService"]
