from dataclasses import dataclass, fields
from typing import Optional


class Command:
    """Marker base class for commands."""

    @classmethod
    def from_dict(cls, data: dict):
        """
        Tolerant reader: ignore extra fields when constructing commands.
        """
        allowed = {f.name for f in fields(cls) if f.init}
        filtered = {k: v for k, v in data.items() if k in allowed}
        return cls(**filtered)


@dataclass
class RegisterUser(Command):
    email: str
    name: str
    password: str
    avatar: Optional[str] = None


@dataclass
class CreatePost(Command):
    author_id: str
    text: str


@dataclass
class DeletePost(Command):
    post_id: str
    user_id: str


@dataclass
class LikePost(Command):
    post_id: str
    user_id: str


@dataclass
class UnlikePost(Command):
    post_id: str
    user_id: str


@dataclass
class AddComment(Command):
    post_id: str
    user_id: str
    text: str


@dataclass
class DeleteComment(Command):
    post_id: str
    comment_id: str
    user_id: str
