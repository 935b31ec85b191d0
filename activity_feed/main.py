"""
Activity Feed - FastAPI pull interface over the feed client.
"""
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from activity_feed.client import FeedClient
from activity_feed.errors import FetchFailed
from activity_feed.transport import HTTPTransport
from config.settings import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("feed.api")

APP_NAME = "Activity Feed"
APP_VERSION = "v0.1.0"

app = FastAPI(
    title=APP_NAME,
    description="Most active users and trending posts from the upstream feed API",
    version=APP_VERSION,
)

_feed_client: Optional[FeedClient] = None


def get_feed_client() -> FeedClient:
    """Get or create the feed client shared by all requests."""
    global _feed_client
    if _feed_client is None:
        _feed_client = FeedClient(
            HTTPTransport(),
            max_workers=settings.max_fetch_workers,
        )
    return _feed_client


def _upstream_error(e: FetchFailed) -> HTTPException:
    logger.error(f"Upstream failure: {e}")
    return HTTPException(
        status_code=502,
        detail={"error": str(e), "resource": e.resource, "key": e.key},
    )


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version")
def version_info():
    return {"name": APP_NAME, "version": APP_VERSION}


@app.get("/cache/stats")
def cache_stats(client: FeedClient = Depends(get_feed_client)):
    """Get cache statistics."""
    return client.get_cache_stats()


# ===== RESOURCES =====

@app.get("/api/users")
def list_users(client: FeedClient = Depends(get_feed_client)):
    try:
        users = client.fetch_users()
    except FetchFailed as e:
        raise _upstream_error(e)
    return {"users": [user.to_dict() for user in users], "count": len(users)}


@app.get("/api/users/{user_id}/posts")
def list_user_posts(user_id: int, client: FeedClient = Depends(get_feed_client)):
    try:
        posts = client.fetch_user_posts(user_id)
    except FetchFailed as e:
        raise _upstream_error(e)
    return {
        "userId": user_id,
        "posts": [post.to_dict() for post in posts],
        "count": len(posts),
    }


@app.get("/api/posts")
def list_posts(client: FeedClient = Depends(get_feed_client)):
    """All posts across all users, in user order."""
    try:
        posts = client.fetch_all_posts()
    except FetchFailed as e:
        raise _upstream_error(e)
    return {"posts": [post.to_dict() for post in posts], "count": len(posts)}


# ===== VIEWS =====

@app.get("/api/top-users")
def top_users(client: FeedClient = Depends(get_feed_client)):
    """Top 5 users by number of posts."""
    try:
        users = client.compute_top_users()
    except FetchFailed as e:
        raise _upstream_error(e)
    return {"users": [user.to_dict() for user in users]}


@app.get("/api/trending-posts")
def trending_posts(client: FeedClient = Depends(get_feed_client)):
    """Posts tied for the most comments."""
    try:
        posts = client.compute_trending_posts()
    except FetchFailed as e:
        raise _upstream_error(e)
    return {"posts": [post.to_dict() for post in posts]}
