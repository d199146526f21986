from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Tuple

from postfeed.domain import exceptions


# --- Value objects ---


@dataclass(eq=True, frozen=True)
class Profile:
    """Display snapshot of a user, copied onto posts and comments."""

    user_id: str
    name: str
    avatar: Optional[str] = None


def new_id() -> str:
    return str(uuid.uuid4())


def validate_identifier(value: str) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError as e:
        raise exceptions.InvalidIdentifier(f"Malformed identifier {value!r}") from e


def require_text(text: Optional[str]) -> str:
    if not text or not text.strip():
        raise exceptions.EmptyText("Text is required")
    return text


# --- Entities ---


@dataclass(eq=True, frozen=True)
class User:
    id: str
    email: str
    name: str
    avatar: Optional[str] = None
    password_hash: Optional[str] = field(default=None, repr=False)
    events: List = field(default_factory=list, compare=False, repr=False)

    @property
    def profile(self) -> Profile:
        return Profile(user_id=self.id, name=self.name, avatar=self.avatar)


@dataclass(eq=True, frozen=True)
class Like:
    user_id: str


@dataclass(eq=True, frozen=True)
class Comment:
    id: str
    author_id: str
    author_name: str
    author_avatar: Optional[str]
    text: str
    created_at: datetime


# --- Aggregates ---


@dataclass(eq=True, frozen=True)
class Post:
    """
    Root aggregate owning its likes and comments.

    Every mutation returns a new Post; nothing here touches storage. Both
    collections are ordered with the insertion point at the front, so likes
    read most-recent-first and comments newest-first.
    """

    id: str
    author_id: str
    author_name: str
    author_avatar: Optional[str]
    text: str
    created_at: datetime
    likes: Tuple[Like, ...] = ()
    comments: Tuple[Comment, ...] = ()
    version: int = field(default=0, compare=False)
    events: List = field(default_factory=list, compare=False, repr=False)

    @classmethod
    def create(cls, post_id: str, author: Profile, text: str, created_at: datetime) -> "Post":
        return cls(
            id=post_id,
            author_id=author.user_id,
            author_name=author.name,
            author_avatar=author.avatar,
            text=require_text(text),
            created_at=created_at,
        )

    # likes

    def liked_by(self, user_id: str) -> bool:
        return any(like.user_id == user_id for like in self.likes)

    def like(self, user_id: str) -> "Post":
        if self.liked_by(user_id):
            raise exceptions.AlreadyLiked("Post already liked")
        return self._evolve(likes=(Like(user_id=user_id),) + self.likes)

    def unlike(self, user_id: str) -> "Post":
        if not self.liked_by(user_id):
            raise exceptions.NotYetLiked("Post not yet liked")
        index = next(i for i, like in enumerate(self.likes) if like.user_id == user_id)
        return self._evolve(likes=self.likes[:index] + self.likes[index + 1 :])

    # comments

    def find_comment(self, comment_id: str) -> Optional[Comment]:
        return next((c for c in self.comments if c.id == comment_id), None)

    def add_comment(
        self, comment_id: str, author: Profile, text: str, created_at: datetime
    ) -> "Post":
        comment = Comment(
            id=comment_id,
            author_id=author.user_id,
            author_name=author.name,
            author_avatar=author.avatar,
            text=require_text(text),
            created_at=created_at,
        )
        return self._evolve(comments=(comment,) + self.comments)

    def remove_comment(self, comment_id: str, user_id: str) -> "Post":
        comment = self.find_comment(comment_id)
        if comment is None:
            raise exceptions.CommentNotFound("Comment does not exist")
        if comment.author_id != user_id:
            raise exceptions.NotCommentAuthor("User not authorized")
        return self._evolve(comments=tuple(c for c in self.comments if c.id != comment_id))

    # ownership

    def ensure_deletable_by(self, user_id: str) -> None:
        if self.author_id != user_id:
            raise exceptions.NotPostAuthor("Not authorized")

    def _evolve(self, **changes) -> "Post":
        # events belong to one in-flight instance, never to its successor
        return replace(self, events=[], **changes)
