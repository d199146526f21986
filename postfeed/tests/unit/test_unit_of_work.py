from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from postfeed.db import metadata
from postfeed.domain import events, model
from postfeed.service_layer.unit_of_work import SqlAlchemyUnitOfWork
from postfeed.tests.fakes import make_uow

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_collect_new_events_clears_event_queues():
    user = model.User(id=model.new_id(), email="a@example.com", name="Alice")
    user.events.append(events.UserRegistered(user_id=user.id, email=user.email, name="Alice"))
    post = model.Post.create(post_id=model.new_id(), author=user.profile, text="hi", created_at=T0)
    post.events.append(events.PostCreated(post_id=post.id, author_id=user.id))

    uow = make_uow(users=[user], posts=[post])
    uow.users.seen.add(user)
    uow.posts.seen.add(post)

    collected = uow.collect_new_events()

    assert collected == [
        events.UserRegistered(user_id=user.id, email=user.email, name="Alice"),
        events.PostCreated(post_id=post.id, author_id=user.id),
    ]
    assert user.events == []
    assert post.events == []


def _make_session_factory(tmp_path, name="uow.db"):
    engine = create_engine(f"sqlite:///{tmp_path / name}")
    return sessionmaker(bind=engine, expire_on_commit=False)


def test_sqlalchemy_uow_commit_and_rollback(tmp_path):
    session_factory = _make_session_factory(tmp_path)
    alice = model.User(id=model.new_id(), email="a@example.com", name="Alice")
    bob = model.User(id=model.new_id(), email="b@example.com", name="Bob")

    with SqlAlchemyUnitOfWork(session_factory=session_factory) as uow:
        uow.users.add(alice)
        uow.commit()

    with SqlAlchemyUnitOfWork(session_factory=session_factory) as uow:
        assert uow.users.get(alice.id) == alice
        uow.users.add(bob)
        uow.rollback()

    with SqlAlchemyUnitOfWork(session_factory=session_factory) as uow:
        assert uow.users.get_by_email("b@example.com") is None


def test_sqlalchemy_uow_discards_uncommitted_work_on_error(tmp_path):
    session_factory = _make_session_factory(tmp_path)
    alice = model.User(id=model.new_id(), email="a@example.com", name="Alice")

    with pytest.raises(RuntimeError):
        with SqlAlchemyUnitOfWork(session_factory=session_factory) as uow:
            uow.posts.add(model.Post.create(post_id=model.new_id(), author=alice.profile, text="hi", created_at=T0))
            raise RuntimeError("request cancelled")

    with SqlAlchemyUnitOfWork(session_factory=session_factory) as uow:
        assert uow.posts.list_all() == []


def test_ensure_schema_runs_once_per_engine(monkeypatch, tmp_path):
    calls = []
    original = metadata.create_all

    def wrapper(bind):
        calls.append(bind)
        return original(bind)

    monkeypatch.setattr(metadata, "create_all", wrapper)

    first = _make_session_factory(tmp_path, "first.db")
    second = _make_session_factory(tmp_path, "second.db")
    for factory in (first, first, second, second):
        with SqlAlchemyUnitOfWork(session_factory=factory):
            pass

    assert len(calls) == 2
