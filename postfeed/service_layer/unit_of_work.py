from __future__ import annotations

import abc
import logging
from typing import Iterator, List, Optional, Set

from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from postfeed.db import metadata, SessionLocal
from postfeed.domain import events, exceptions
from postfeed.service_layer import repository
from postfeed.adapters import repository as sql_repo

logger = logging.getLogger(__name__)


def _is_transient(error: Optional[BaseException]) -> bool:
    """Locked database, dropped connection or exhausted pool: worth a retry."""
    if isinstance(error, (sa_exc.OperationalError, sa_exc.TimeoutError)):
        return True
    return isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated


class AbstractUnitOfWork(abc.ABC):
    """One transaction over the user directory and the post store.

    Leaving the ``with`` block without ``commit()`` discards the work, which
    covers handler failures as well as requests cancelled mid-flight.
    """

    users: repository.AbstractUserRepository
    posts: repository.AbstractPostRepository

    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, *args) -> None:
        self.rollback()

    def _touched(self) -> Iterator:
        # repositories only exist once the unit of work has been entered
        for name in ("users", "posts"):
            repo = getattr(self, name, None)
            if repo is not None:
                yield from repo.seen

    def collect_new_events(self) -> List[events.Event]:
        collected: List[events.Event] = []
        for aggregate in self._touched():
            collected.extend(aggregate.events)
            aggregate.events.clear()
        return collected

    @abc.abstractmethod
    def commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    _schema_ready: Set[Engine] = set()

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self.session_factory = session_factory or SessionLocal
        self.session: Session | None = None

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self.session_factory()
        self._create_tables_once(self.session.get_bind())
        self.users = sql_repo.SqlAlchemyUserRepository(self.session)
        self.posts = sql_repo.SqlAlchemyPostRepository(self.session)
        return super().__enter__()

    def __exit__(self, exc_type, error, tb) -> None:
        try:
            super().__exit__(exc_type, error, tb)
        finally:
            self.session.close()
            self.session = None
        if _is_transient(error):
            logger.warning("Database unavailable: %s", error)
            raise exceptions.StoreError("Post store unavailable, try again") from error

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        try:
            self.session.rollback()
        except sa_exc.DBAPIError as e:
            if _is_transient(e):
                raise exceptions.StoreError("Post store unavailable, try again") from e
            raise

    @classmethod
    def _create_tables_once(cls, bind: Engine) -> None:
        # SQLite files in dev/test start out empty
        if bind not in cls._schema_ready:
            metadata.create_all(bind=bind)
            cls._schema_ready.add(bind)


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self,
        users_repo: repository.AbstractUserRepository,
        posts_repo: repository.AbstractPostRepository,
    ) -> None:
        self.users = users_repo
        self.posts = posts_repo
        self.committed = False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        # in-memory repositories write through; nothing to undo
        pass
