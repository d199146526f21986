from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import exc, select
from sqlalchemy.orm import Session

from postfeed.db import comment_table, likes_table, post_table, user_table
from postfeed.domain import exceptions, model
from postfeed.service_layer import repository as abs_repo


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAlchemyUserRepository(abs_repo.AbstractUserRepository):
    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session

    def _add(self, user: model.User) -> None:
        stmt = user_table.insert().values(
            id=user.id,
            email=user.email,
            name=user.name,
            avatar=user.avatar,
            password=user.password_hash,
        )
        try:
            self.session.execute(stmt)
        except exc.IntegrityError as e:
            # a concurrent registration won the unique email index
            raise exceptions.UserExists(f"User with email {user.email} already exists") from e

    def _get(self, user_id: str) -> Optional[model.User]:
        stmt = select(user_table).where(user_table.c.id == user_id)
        row = self.session.execute(stmt).mappings().first()
        if not row:
            return None
        return self._row_to_user(row)

    def _get_by_email(self, email: str) -> Optional[model.User]:
        stmt = select(user_table).where(user_table.c.email == email)
        row = self.session.execute(stmt).mappings().first()
        if not row:
            return None
        return self._row_to_user(row)

    def _row_to_user(self, row) -> model.User:
        return model.User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            avatar=row.get("avatar"),
            password_hash=row.get("password"),
        )


class SqlAlchemyPostRepository(abs_repo.AbstractPostRepository):
    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session

    def _add(self, post: model.Post) -> None:
        self.session.execute(
            post_table.insert().values(
                id=post.id,
                author_id=post.author_id,
                author_name=post.author_name,
                author_avatar=post.author_avatar,
                text=post.text,
                created_at=post.created_at,
                version=post.version,
            )
        )
        self._write_children(post)

    def _save(self, post: model.Post) -> model.Post:
        self._claim_version(post)
        self._clear_children(post.id)
        self._write_children(post)
        return replace(post, version=post.version + 1)

    def _delete(self, post: model.Post) -> None:
        self._claim_version(post)
        self._clear_children(post.id)
        self.session.execute(post_table.delete().where(post_table.c.id == post.id))

    def _claim_version(self, post: model.Post) -> None:
        # Compare-and-swap on the version column serialises concurrent
        # load-modify-save cycles on the same post.
        result = self.session.execute(
            post_table.update()
            .where(post_table.c.id == post.id, post_table.c.version == post.version)
            .values(version=post.version + 1)
        )
        if result.rowcount != 1:
            raise exceptions.ConcurrentModification(f"Post {post.id} was modified concurrently")

    def _get(self, post_id: str) -> Optional[model.Post]:
        stmt = select(post_table).where(post_table.c.id == post_id)
        row = self.session.execute(stmt).mappings().first()
        if not row:
            return None
        return self._hydrate_post(row)

    def _list_by_author(self, author_id: str) -> Iterable[model.Post]:
        stmt = (
            select(post_table)
            .where(post_table.c.author_id == author_id)
            .order_by(post_table.c.created_at.desc())
        )
        rows = self.session.execute(stmt).mappings().all()
        return [self._hydrate_post(row) for row in rows]

    def _list_all(self) -> Iterable[model.Post]:
        stmt = select(post_table).order_by(post_table.c.created_at.desc())
        rows = self.session.execute(stmt).mappings().all()
        return [self._hydrate_post(row) for row in rows]

    def _clear_children(self, post_id: str) -> None:
        self.session.execute(likes_table.delete().where(likes_table.c.post_id == post_id))
        self.session.execute(comment_table.delete().where(comment_table.c.post_id == post_id))

    def _write_children(self, post: model.Post) -> None:
        if post.likes:
            self.session.execute(
                likes_table.insert(),
                [
                    {"post_id": post.id, "user_id": like.user_id, "position": position}
                    for position, like in enumerate(post.likes)
                ],
            )
        if post.comments:
            self.session.execute(
                comment_table.insert(),
                [
                    {
                        "id": comment.id,
                        "post_id": post.id,
                        "author_id": comment.author_id,
                        "author_name": comment.author_name,
                        "author_avatar": comment.author_avatar,
                        "text": comment.text,
                        "created_at": comment.created_at,
                        "position": position,
                    }
                    for position, comment in enumerate(post.comments)
                ],
            )

    def _hydrate_post(self, row) -> model.Post:
        l_stmt = (
            select(likes_table)
            .where(likes_table.c.post_id == row["id"])
            .order_by(likes_table.c.position)
        )
        likes = tuple(
            model.Like(user_id=lrow["user_id"])
            for lrow in self.session.execute(l_stmt).mappings().all()
        )
        c_stmt = (
            select(comment_table)
            .where(comment_table.c.post_id == row["id"])
            .order_by(comment_table.c.position)
        )
        comments = tuple(
            model.Comment(
                id=crow["id"],
                author_id=crow["author_id"],
                author_name=crow["author_name"],
                author_avatar=crow["author_avatar"],
                text=crow["text"],
                created_at=_as_utc(crow["created_at"]),
            )
            for crow in self.session.execute(c_stmt).mappings().all()
        )
        return model.Post(
            id=row["id"],
            author_id=row["author_id"],
            author_name=row["author_name"],
            author_avatar=row["author_avatar"],
            text=row["text"],
            created_at=_as_utc(row["created_at"]),
            likes=likes,
            comments=comments,
            version=row["version"],
        )
