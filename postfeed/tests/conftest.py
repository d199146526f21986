from typing import AsyncGenerator, Callable, Generator
import os

# Force test configuration for all imports
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from postfeed import security
from postfeed.db import metadata
from postfeed.domain import model
from postfeed.entrypoints.dependencies import get_uow
from postfeed.main import app
from postfeed.service_layer.unit_of_work import SqlAlchemyUnitOfWork

@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"

@pytest.fixture()
def session_factory(tmp_path) -> Generator:
    """A throwaway SQLite file per test, shared by every unit of work the test opens."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'postfeed.db'}", connect_args={"check_same_thread": False}
    )
    metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()

@pytest.fixture()
def uow_factory(session_factory) -> Callable[[], SqlAlchemyUnitOfWork]:
    return lambda: SqlAlchemyUnitOfWork(session_factory=session_factory)

@pytest.fixture()
def api(uow_factory) -> Generator:
    app.dependency_overrides[get_uow] = uow_factory
    yield app
    app.dependency_overrides.clear()

@pytest.fixture()
def client(api) -> Generator:
    yield TestClient(api)

@pytest.fixture()
async def async_client(api) -> AsyncGenerator:
    """A client for making asynchronous requests to the app."""
    transport = ASGITransport(app=api)
    async with AsyncClient(transport=transport, base_url="http://testserver", timeout=5.0) as ac:
        yield ac

@pytest.fixture()
def make_user(uow_factory) -> Callable[..., dict]:
    """Store a user directly and hand back its id plus auth headers, skipping bcrypt."""

    def _make_user(name: str, avatar: str | None = None) -> dict:
        user = model.User(
            id=model.new_id(),
            email=f"{name.lower()}@example.net",
            name=name,
            avatar=avatar,
        )
        with uow_factory() as uow:
            uow.users.add(user)
            uow.commit()
        token = security.create_access_token(user.id)
        return {"id": user.id, "name": name, "headers": {"Authorization": f"Bearer {token}"}}

    return _make_user
