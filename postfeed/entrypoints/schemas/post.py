from typing import Optional
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator


def _ensure_timezone_aware_utc(value):
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class TextI(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def text_is_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Text is required")
        return value


# Posts
class PostI(TextI):
    pass


# Likes
class Like(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str


# Comments
class CommentI(TextI):
    pass


class Comment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    author_name: str
    author_avatar: Optional[str] = None
    text: str
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def ensure_timezone_aware_utc(cls, value):
        return _ensure_timezone_aware_utc(value)


class Post(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    author_name: str
    author_avatar: Optional[str] = None
    text: str
    created_at: datetime
    likes: list[Like]
    comments: list[Comment]

    @field_validator("created_at", mode="before")
    @classmethod
    def ensure_timezone_aware_utc(cls, value):
        return _ensure_timezone_aware_utc(value)
