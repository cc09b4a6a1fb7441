"""
Pytest configuration and fixtures for Tasksync tests.

Tests run against a throwaway SQLite file per test; the FastAPI app gets
its session, auth identity and notification/event sinks swapped for fakes.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

import tasksync.models  # noqa: F401
from tasksync.auth import AuthenticatedUser, get_current_user
from tasksync.database import get_session, session_scope
from tasksync.main import app
from tasksync.models import NotificationAction, TaskStatus, User
from tasksync.routes.tasks import get_event_sink, get_notification_sink
from tasksync.services.realtime import TaskEvent
from tasksync.services.scheduling import SchedulingEngine


class FakeNotifier:
    """Records enqueued notification jobs; can be told to fail."""

    def __init__(self):
        self.jobs: list[tuple[uuid.UUID, uuid.UUID, NotificationAction]] = []
        self.fail = False

    async def enqueue(self, user_id, task_id, action):
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.jobs.append((user_id, task_id, action))


class FakeEvents:
    """Records emitted task events."""

    def __init__(self):
        self.events: list[tuple[TaskEvent, uuid.UUID]] = []

    async def emit(self, event, task_id):
        self.events.append((event, task_id))


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine backed by a temporary SQLite file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'tasksync_test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(session_maker):
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def session_context(session_maker):
    """Drop-in replacement for tasksync.database.get_session_context."""
    return lambda: session_scope(session_maker)


@pytest_asyncio.fixture
async def users(session_maker) -> dict[str, User]:
    """Three assignable users keyed by first name."""
    people = {
        "alice": User(firebase_uid="uid-alice", email="alice@example.com", name="Alice"),
        "bob": User(firebase_uid="uid-bob", email="bob@example.com", name="Bob"),
        "carol": User(firebase_uid="uid-carol", email="carol@example.com", name="Carol"),
    }
    async with session_maker() as session:
        session.add_all(people.values())
        await session.commit()
    return people


@pytest_asyncio.fixture
async def statuses(session_maker) -> dict[str, TaskStatus]:
    catalog = {
        "pending": TaskStatus(name="Pending", slug="pending"),
        "in-progress": TaskStatus(name="In Progress", slug="in-progress"),
        "completed": TaskStatus(name="Completed", slug="completed"),
    }
    async with session_maker() as session:
        session.add_all(catalog.values())
        await session.commit()
    return catalog


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def events():
    return FakeEvents()


@pytest.fixture
def scheduler(test_session, notifier, events) -> SchedulingEngine:
    return SchedulingEngine(test_session, notifier=notifier, events=events)


@pytest_asyncio.fixture(scope="function")
async def client(session_maker, users, notifier, events):
    """Async test client authenticated as Alice, with fake sinks."""

    async def override_get_session():
        async with session_scope(session_maker) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notification_sink] = lambda: notifier
    app.dependency_overrides[get_event_sink] = lambda: events
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(
        uid="uid-alice", email="alice@example.com", name="Alice",
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
