"""
Feed client: cached resource fetchers, cross-entity aggregators and
analytics views over the upstream users/posts/comments API.
"""
import logging
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence

import requests

from .analytics import rank_top_users, select_trending_posts
from .cache import GLOBAL_KEY, CacheManager, ResourceClass, utc_now
from .cache.core import Clock
from .concurrency import join_all
from .errors import FetchFailed
from .models import Comment, Post, RankedUser, TrendingPost, User

logger = logging.getLogger("feed.client")

# Upstream errors that normalize to FetchFailed. ValueError covers invalid
# JSON bodies and bad ids; the rest cover payloads of the wrong shape.
UPSTREAM_ERRORS = (
    requests.RequestException,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
)


class FeedClient:
    """
    Aggregation client with per-resource TTL caching.

    Every operation either returns data or raises FetchFailed; partial
    results are never returned.

    Usage:
        client = FeedClient(HTTPTransport())
        top = client.compute_top_users()
    """

    def __init__(
        self,
        transport,
        clock: Clock = utc_now,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize the client.

        Args:
            transport: Object with ``get_json(path)`` returning decoded JSON
            clock: Time source for cache timestamps
            max_workers: Thread cap per fan-out (None = one per call)
        """
        self._transport = transport
        self._cache = CacheManager(clock=clock)
        self._max_workers = max_workers

    @property
    def cache(self) -> CacheManager:
        return self._cache

    # ===== RESOURCE FETCHERS =====

    def fetch_users(self) -> List[User]:
        """Get all users (cached for 60s)."""
        def load():
            raw = self._transport.get_json("users")
            return [User.from_upstream(user_id, name) for user_id, name in raw.items()]

        return self._cached(ResourceClass.USERS, GLOBAL_KEY, load)

    def fetch_user_posts(self, user_id: int) -> List[Post]:
        """Get one user's posts (cached per user for 30s)."""
        def load():
            raw = self._transport.get_json(f"users/{user_id}/posts")
            return [Post.from_upstream(record, user_id) for record in raw]

        return self._cached(ResourceClass.USER_POSTS, user_id, load)

    def fetch_post_comments(self, post_id: int) -> List[Comment]:
        """Get one post's comments (cached per post for 30s)."""
        def load():
            raw = self._transport.get_json(f"posts/{post_id}/comments")
            return [Comment.from_upstream(record, post_id) for record in raw]

        return self._cached(ResourceClass.POST_COMMENTS, post_id, load)

    # ===== AGGREGATORS =====

    def fetch_all_posts(self) -> List[Post]:
        """
        Get posts for every user, flattened in user order.

        Per-user fetches run concurrently; any single failure fails the call.
        """
        users = self.fetch_users()
        per_user = join_all(
            [lambda uid=user.id: self.fetch_user_posts(uid) for user in users],
            self._max_workers,
        )
        return [post for posts in per_user for post in posts]

    def fetch_all_comment_counts(self, post_ids: Sequence[int]) -> Dict[int, int]:
        """Map each post id to its number of comments, fetched concurrently."""
        post_ids = list(post_ids)
        per_post = join_all(
            [lambda pid=post_id: self.fetch_post_comments(pid) for post_id in post_ids],
            self._max_workers,
        )
        return {
            post_id: len(comments)
            for post_id, comments in zip(post_ids, per_post)
        }

    # ===== ANALYTICS VIEWS =====

    def compute_top_users(self) -> List[RankedUser]:
        """Top 5 users by post count."""
        users, posts = join_all(
            [self.fetch_users, self.fetch_all_posts],
            self._max_workers,
        )
        return rank_top_users(users, posts)

    def compute_trending_posts(self) -> List[TrendingPost]:
        """Posts tied for the highest comment count."""
        _, posts = join_all(
            [self.fetch_users, self.fetch_all_posts],
            self._max_workers,
        )
        counts = self.fetch_all_comment_counts([post.id for post in posts])
        return select_trending_posts(posts, counts)

    def get_cache_stats(self) -> Dict[str, Any]:
        return self._cache.get_stats()

    # ===== INTERNALS =====

    def _cached(
        self,
        resource: ResourceClass,
        key: Hashable,
        load: Callable[[], Any],
    ) -> Any:
        """Read through the cache; transport and payload errors become FetchFailed."""
        def fetch():
            try:
                return load()
            except UPSTREAM_ERRORS as e:
                raise self._failure(resource.value, key, e) from e

        return self._cache.fetch(resource, key, fetch)

    @staticmethod
    def _failure(resource: str, key: Optional[Hashable], error: BaseException) -> FetchFailed:
        if key == GLOBAL_KEY:
            key = None
        logger.warning(
            f"Upstream fetch failed: resource={resource} key={key} "
            f"error={type(error).__name__}: {error}"
        )
        return FetchFailed(resource, key, error)
