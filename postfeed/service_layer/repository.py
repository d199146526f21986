from __future__ import annotations

import abc
from typing import Iterable, List, Optional, Set

from postfeed.domain.model import Post, User, validate_identifier


class AbstractUserRepository(abc.ABC):
    """The user directory: resolves ids to users and their display profiles."""

    def __init__(self) -> None:
        self.seen: Set[User] = set()

    def add(self, user: User) -> None:
        self._add(user)
        self.seen.add(user)

    def get(self, user_id: str) -> Optional[User]:
        user = self._get(validate_identifier(user_id))
        if user:
            self.seen.add(user)
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        user = self._get_by_email(email)
        if user:
            self.seen.add(user)
        return user

    @abc.abstractmethod
    def _add(self, user: User) -> None: ...

    @abc.abstractmethod
    def _get(self, user_id: str) -> Optional[User]: ...

    @abc.abstractmethod
    def _get_by_email(self, email: str) -> Optional[User]: ...


class AbstractPostRepository(abc.ABC):
    """
    The post store. ``save`` and ``delete`` are version-checked: they raise
    ConcurrentModification when the stored post changed since it was loaded.
    """

    def __init__(self) -> None:
        self.seen: Set[Post] = set()

    def add(self, post: Post) -> None:
        self._add(post)
        self.seen.add(post)

    def save(self, post: Post) -> Post:
        """Persist a mutated aggregate and return it with its new version."""
        saved = self._save(post)
        self.seen.add(saved)
        return saved

    def delete(self, post: Post) -> None:
        self._delete(post)
        self.seen.add(post)

    def get(self, post_id: str) -> Optional[Post]:
        post = self._get(validate_identifier(post_id))
        if post:
            self.seen.add(post)
        return post

    def list_by_author(self, author_id: str) -> List[Post]:
        posts = list(self._list_by_author(validate_identifier(author_id)))
        self.seen.update(posts)
        return posts

    def list_all(self) -> List[Post]:
        posts = list(self._list_all())
        self.seen.update(posts)
        return posts

    @abc.abstractmethod
    def _add(self, post: Post) -> None: ...

    @abc.abstractmethod
    def _save(self, post: Post) -> Post: ...

    @abc.abstractmethod
    def _delete(self, post: Post) -> None: ...

    @abc.abstractmethod
    def _get(self, post_id: str) -> Optional[Post]: ...

    @abc.abstractmethod
    def _list_by_author(self, author_id: str) -> Iterable[Post]: ...

    @abc.abstractmethod
    def _list_all(self) -> Iterable[Post]: ...
