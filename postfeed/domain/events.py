from dataclasses import dataclass, fields


class Event:
    """Marker base class for domain events."""

    @classmethod
    def from_dict(cls, data: dict):
        """
        Tolerant reader for inbound events: ignore unknown fields.
        """
        allowed = {f.name for f in fields(cls) if f.init}
        filtered = {k: v for k, v in data.items() if k in allowed}
        return cls(**filtered)


@dataclass
class PostCreated(Event):
    post_id: str
    author_id: str


@dataclass
class PostDeleted(Event):
    post_id: str
    author_id: str


@dataclass
class PostLiked(Event):
    post_id: str
    user_id: str


@dataclass
class PostUnliked(Event):
    post_id: str
    user_id: str


@dataclass
class CommentAdded(Event):
    post_id: str
    comment_id: str
    user_id: str


@dataclass
class CommentDeleted(Event):
    post_id: str
    comment_id: str
    user_id: str


@dataclass
class UserRegistered(Event):
    user_id: str
    email: str
    name: str
