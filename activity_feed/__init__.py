"""
Activity feed aggregation: cached users/posts/comments fetches and the
"most active users" and "trending posts" views built on them.
"""
from .client import FeedClient
from .errors import FetchFailed
from .models import Comment, Post, RankedUser, TrendingPost, User, derive_username
from .transport import HTTPTransport

__all__ = [
    "FeedClient",
    "FetchFailed",
    "HTTPTransport",
    # Models
    "User",
    "Post",
    "Comment",
    "RankedUser",
    "TrendingPost",
    "derive_username",
]
