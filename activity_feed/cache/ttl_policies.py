"""
TTL configuration by resource class.
"""
from datetime import timedelta
from enum import Enum
from typing import Dict


class ResourceClass(Enum):
    """Upstream resources with independent cache windows."""
    USERS = "users"                    # one global entry
    USER_POSTS = "user_posts"          # one entry per user id
    POST_COMMENTS = "post_comments"    # one entry per post id


# Fixed policy, in milliseconds
TTL_CONFIG: Dict[ResourceClass, int] = {
    ResourceClass.USERS: 60_000,
    ResourceClass.USER_POSTS: 30_000,
    ResourceClass.POST_COMMENTS: 30_000,
}


def get_ttl_for_resource(resource: ResourceClass) -> timedelta:
    """
    Get the TTL for a resource class.

    Args:
        resource: The upstream resource class

    Returns:
        TTL as a timedelta
    """
    return timedelta(milliseconds=TTL_CONFIG[resource])
