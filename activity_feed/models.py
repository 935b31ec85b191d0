"""
Data models for the activity feed.

These dataclasses are the normalized shape of upstream records; the
upstream field names only appear in the ``from_upstream`` constructors.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping

_WHITESPACE_RUN = re.compile(r"\s+")


def derive_username(name: str) -> str:
    """
    Build a username from a display name.

    'Jane Doe' -> 'jane.doe', 'Ann   Lee' -> 'ann.lee'
    """
    return _WHITESPACE_RUN.sub(".", name.strip().lower())


@dataclass(frozen=True)
class User:
    id: int
    name: str
    username: str

    @classmethod
    def from_upstream(cls, user_id: Any, name: str) -> "User":
        """Build a user from one entry of the upstream id -> name mapping."""
        if not isinstance(name, str):
            raise TypeError(f"user {user_id} has non-string name {name!r}")
        return cls(id=int(user_id), name=name, username=derive_username(name))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "username": self.username}


@dataclass(frozen=True)
class Post:
    id: int
    user_id: int
    title: str
    body: str

    @classmethod
    def from_upstream(cls, record: Mapping[str, Any], user_id: int) -> "Post":
        """Build a post from an upstream record; 'content' becomes the body."""
        post_id = int(record["id"])
        content = record["content"]
        if not isinstance(content, str):
            raise TypeError(f"post {post_id} has non-string content {content!r}")
        return cls(
            id=post_id,
            user_id=int(record.get("userId", user_id)),
            title=f"Post #{post_id}",
            body=content,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "body": self.body,
        }


@dataclass(frozen=True)
class Comment:
    id: int
    post_id: int
    body: str

    @classmethod
    def from_upstream(cls, record: Mapping[str, Any], post_id: int) -> "Comment":
        comment_id = int(record["id"])
        body = record["body"]
        if not isinstance(body, str):
            raise TypeError(f"comment {comment_id} has non-string body {body!r}")
        return cls(
            id=comment_id,
            post_id=int(record.get("postId", post_id)),
            body=body,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "postId": self.post_id, "body": self.body}


@dataclass(frozen=True)
class RankedUser:
    """A user with the number of posts they authored."""
    id: int
    name: str
    username: str
    post_count: int

    @classmethod
    def from_user(cls, user: User, post_count: int) -> "RankedUser":
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            post_count=post_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "postCount": self.post_count,
        }


@dataclass(frozen=True)
class TrendingPost:
    """A post with its comment count."""
    id: int
    user_id: int
    title: str
    body: str
    comment_count: int

    @classmethod
    def from_post(cls, post: Post, comment_count: int) -> "TrendingPost":
        return cls(
            id=post.id,
            user_id=post.user_id,
            title=post.title,
            body=post.body,
            comment_count=comment_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "body": self.body,
            "commentCount": self.comment_count,
        }
