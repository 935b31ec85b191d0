"""
Derived views over users, posts and comment counts.

Pure functions: callers fetch the inputs, these only rank and filter.
"""
from collections import Counter
from typing import Iterable, List, Mapping, Sequence

from .models import Post, RankedUser, TrendingPost, User

TOP_USERS_LIMIT = 5


def rank_top_users(
    users: Sequence[User],
    posts: Iterable[Post],
    limit: int = TOP_USERS_LIMIT,
) -> List[RankedUser]:
    """
    Rank users by number of posts, most active first.

    Ties keep the input order of ``users`` (sorted() is stable).

    Args:
        users: All users, in upstream order
        posts: All posts across users
        limit: Max number of users returned

    Returns:
        Up to ``limit`` users with their post counts
    """
    counts = Counter(post.user_id for post in posts)
    ranked = [RankedUser.from_user(user, counts.get(user.id, 0)) for user in users]
    ranked = sorted(ranked, key=lambda u: u.post_count, reverse=True)
    return ranked[:limit]


def select_trending_posts(
    posts: Sequence[Post],
    comment_counts: Mapping[int, int],
) -> List[TrendingPost]:
    """
    Keep the posts that share the highest comment count.

    Args:
        posts: All posts, in aggregate order
        comment_counts: Post id -> number of comments

    Returns:
        Every post whose count equals the maximum, in ``posts`` order.
        Empty when there are no posts.
    """
    if not posts:
        return []

    max_comments = max((comment_counts.get(post.id, 0) for post in posts), default=0)
    return [
        TrendingPost.from_post(post, max_comments)
        for post in posts
        if comment_counts.get(post.id, 0) == max_comments
    ]
