"""Shared pytest fixtures for all test suites."""

import uuid
from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.db.models import Base
from backend.vibetravel.models.activity import PlanActivity
from backend.vibetravel.models.common import City

USER_A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
USER_B = uuid.UUID("00000000-0000-0000-0000-00000000000b")


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def sqlite_session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(bind=sqlite_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def sqlite_session(
    sqlite_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Async session on the in-memory engine."""
    async with sqlite_session_factory() as session:
        yield session


@pytest.fixture
def ctx_a() -> RequestContext:
    """Request context for the plan owner."""
    return RequestContext(user_id=USER_A)


@pytest.fixture
def ctx_b() -> RequestContext:
    """Request context for a different user."""
    return RequestContext(user_id=USER_B)


@pytest.fixture
def paris() -> City:
    """Destination city used across tests."""
    return City(id=uuid.UUID("11111111-1111-1111-1111-111111111111"), name="Paris")


@pytest.fixture
def make_activity() -> Callable[..., PlanActivity]:
    """Factory for activities with sensible payload defaults."""

    def _make(
        day_number: int,
        position: int,
        name: str | None = None,
        *,
        with_id: bool = True,
    ) -> PlanActivity:
        return PlanActivity(
            id=uuid.uuid4() if with_id else None,
            day_number=day_number,
            position=position,
            name=name or f"Activity {day_number}.{position}",
            latitude=48.85,
            longitude=2.35,
            google_maps_url="https://www.google.com/maps/search/?api=1&query=Louvre",
        )

    return _make
