# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator, Mapping
from dataclasses import dataclass
from itertools import count
from typing import Any

import pytest

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BROADCAST_DRIVER", "null")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from threadline.api.v1.dependencies import get_transport_dep
from threadline.core.security import create_access_token
from threadline.db.session import Base
from threadline.db.session import get_db as app_get_session
from threadline.main import app as fastapi_app
from threadline.models import Post, User
from threadline.services.broadcaster import DeliveryBroadcaster
from threadline.services.ledger import MessageLedger

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


@dataclass(frozen=True)
class PublishedEvent:
    """One call made to the recording transport."""

    channel: str
    event_name: str
    payload: dict[str, Any]
    socket_id: str | None


class RecordingTransport:
    """Broadcast transport that keeps every published event in memory."""

    def __init__(self) -> None:
        self.published: list[PublishedEvent] = []

    def publish(
        self,
        channel: str,
        event_name: str,
        payload: Mapping[str, Any],
        *,
        socket_id: str | None = None,
    ) -> None:
        self.published.append(PublishedEvent(channel, event_name, dict(payload), socket_id))

    def named(self, event_name: str) -> list[PublishedEvent]:
        return [event for event in self.published if event.event_name == event_name]


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit for real; wipe every table so each test starts clean.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def transport() -> RecordingTransport:
    """Return a transport that records instead of delivering."""
    return RecordingTransport()


@pytest.fixture()
def broadcaster(transport: RecordingTransport) -> DeliveryBroadcaster:
    """Return a broadcaster that publishes immediately to the recording transport."""
    return DeliveryBroadcaster(transport)


@pytest.fixture()
def ledger(db_session: Session, broadcaster: DeliveryBroadcaster) -> MessageLedger:
    """Return a ledger bound to the test session."""
    return MessageLedger(db_session, broadcaster)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    transport: RecordingTransport,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_transport_dep] = lambda: transport
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_transport_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with unique handles."""

    def _make_user(name: str, avatar: str | None = None) -> User:
        serial = next(_USER_COUNTER)
        user = User(
            name=name,
            username=f"{name.lower().replace(' ', '_')}_{serial}",
            email=f"user{serial}@example.com",
            avatar=avatar,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("Alice", avatar="https://cdn.example.com/avatars/alice.png")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("Bob")


@pytest.fixture()
def carol(make_user: Callable[..., User]) -> User:
    return make_user("Carol")


@pytest.fixture()
def shared_post(db_session: Session, carol: User) -> Post:
    """Create a post authored by Carol with some engagement."""
    post = Post(
        user_id=carol.id,
        content="Sunset at the harbour",
        images=["https://cdn.example.com/posts/sunset.jpg"],
        videos=[],
        likes_count=12,
        replies_count=3,
    )
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building authorization headers for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token(user.id)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
