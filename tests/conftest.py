"""
Test configuration and fixtures.

This module provides common test fixtures and configuration for all test suites.
Design Rationale:
- In-memory SQLite per test for isolation without a database server
- The API's session and mailer dependencies are overridden, never patched
- A recording mailer stands in for SMTP and can be told to fail
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POPULARITY_SCAN_ENABLED", "false")

from typing import AsyncGenerator, List, Tuple

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.main import app
from app.core.database import get_session
from app.core.exceptions import DeliveryError
from app.models import database as models  # noqa: F401  (registers tables)
from app.services.events import PopularityEvent, PopularityEventSink
from app.services.mailer import Mailer, get_mailer


class RecordingMailer(Mailer):
    """Keeps sent messages in memory; raises DeliveryError while `fail` is set."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []
        self.fail = False

    @property
    def transport(self) -> str:
        return "memory"

    async def send(self, recipient: str, subject: str, body: str) -> None:
        if self.fail:
            raise DeliveryError("Failed to deliver email", detail="simulated outage")
        self.sent.append((recipient, subject, body))


class RecordingSink(PopularityEventSink):
    """Collects published events without delivering them."""

    def __init__(self):
        self.events: List[PopularityEvent] = []

    async def publish(self, event: PopularityEvent) -> bool:
        self.events.append(event)
        return True


@pytest.fixture
async def engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
async def async_client(session_factory, mailer) -> AsyncGenerator[AsyncClient, None]:
    """Async test client wired to the test database and recording mailer."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_mailer] = lambda: mailer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
