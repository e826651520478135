"""Pytest configuration and fixtures for the HelpYT directory backend.

Roll-up tests run against in-memory stores implementing the same protocols as
the SQL stores. HTTP tests drive ``main:app`` through httpx's ASGI transport;
lifespan events are not sent, so no database or Redis is needed.
"""

import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from config import get_settings
from database import get_db
from exceptions import StoreUnavailable
from middleware.auth import get_current_user, get_optional_user
from models.channel_history import ChannelHistory, StatsPeriod
from models.user import User, UserRole
from services.stats_rollup import RollupEngine
from services.stats_stores import ChannelStatsPeriod, StatsStores


# ============== In-memory stores ==============

class InMemoryChannelStore:
    def __init__(self, state: "InMemoryStats"):
        self.state = state

    async def get(self, channel_id: str):
        if channel_id in self.state.broken_channels:
            raise StoreUnavailable(f"Channel store error for {channel_id}")
        return self.state.channels.get(channel_id)

    async def list_ids(self) -> list[str]:
        if self.state.listing_broken:
            raise StoreUnavailable("Channel listing failed")
        return list(self.state.listed_ids or self.state.channels)


class InMemoryClickLog:
    def __init__(self, state: "InMemoryStats"):
        self.state = state

    async def count_in_range(self, channel_id: str, start: datetime, end: datetime) -> int:
        return sum(
            1 for clicked_at in self.state.clicks.get(channel_id, [])
            if start <= clicked_at <= end
        )


class InMemoryHistoryStore:
    def __init__(self, state: "InMemoryStats"):
        self.state = state

    async def find_by_key(self, channel_id: str, period: StatsPeriod, start_date: datetime):
        return self.state.history.get((channel_id, period, start_date))

    async def upsert(self, stats: ChannelStatsPeriod) -> ChannelHistory:
        key = (stats.channel_id, stats.period, stats.start_date)
        row = self.state.history.get(key)
        if row is None:
            row = ChannelHistory(
                id=str(uuid4()),
                channel_id=stats.channel_id,
                period=stats.period,
                start_date=stats.start_date,
                end_date=stats.end_date,
                created_at=datetime.now(timezone.utc),
            )
            self.state.history[key] = row
        row.subscription_count = stats.subscription_count
        row.click_count = stats.click_count
        row.subscription_growth = stats.subscription_growth
        row.click_growth = stats.click_growth
        self.state.writes += 1
        return row


class InMemoryStats:
    """Backing state for the in-memory stores plus a factory for the engine."""

    def __init__(self):
        self.channels: dict[str, SimpleNamespace] = {}
        self.clicks: dict[str, list[datetime]] = {}
        self.history: dict[tuple, ChannelHistory] = {}
        self.broken_channels: set[str] = set()
        self.listed_ids: list[str] = []
        self.listing_broken = False
        self.writes = 0

    def add_channel(self, channel_id: str, subscription_count: int = 0) -> SimpleNamespace:
        channel = SimpleNamespace(id=channel_id, subscription_count=subscription_count)
        self.channels[channel_id] = channel
        return channel

    def add_clicks(self, channel_id: str, *moments: datetime) -> None:
        self.clicks.setdefault(channel_id, []).extend(moments)

    def factory(self):
        @asynccontextmanager
        async def _unit_of_work():
            yield StatsStores(
                channels=InMemoryChannelStore(self),
                clicks=InMemoryClickLog(self),
                history=InMemoryHistoryStore(self),
            )

        return _unit_of_work


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def db_result(*, first=None, one_or_none=None, scalar=None, rows=(), scalars=()):
    """A mocked ``Result`` answering the accessors the routers call."""
    result = MagicMock()
    result.first.return_value = first
    result.scalar_one_or_none.return_value = one_or_none
    result.scalar_one.return_value = scalar
    result.all.return_value = list(rows)
    result.scalars.return_value.all.return_value = list(scalars)
    return result


# ============== Fixtures ==============

@pytest.fixture
def stats_state() -> InMemoryStats:
    return InMemoryStats()


@pytest.fixture
def engine(stats_state: InMemoryStats) -> RollupEngine:
    """Roll-up engine over in-memory stores with a fixed clock (Wed 2026-10-14 12:00 UTC)."""
    return RollupEngine(
        stores=stats_state.factory(),
        week_start="sunday",
        concurrency=2,
        clock=lambda: utc(2026, 10, 14, 12),
    )


@pytest.fixture
def settings_env(monkeypatch):
    """Set environment variables and reload cached settings."""

    def _set(**values):
        for key, value in values.items():
            monkeypatch.setenv(key.upper(), value)
        get_settings.cache_clear()

    yield _set
    get_settings.cache_clear()


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def sql_session_factory():
    """Session factory on a real Postgres. Skips when TEST_DATABASE_URL is unset.

    Tables are created if missing; each test cleans up the rows it adds.
    """
    url = os.environ.get("TEST_DATABASE_URL")
    if not url:
        pytest.skip("Postgres not configured: set TEST_DATABASE_URL to run SQL store tests")

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from models import Base

    db_engine = create_async_engine(url, pool_pre_ping=True)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    await db_engine.dispose()


@pytest.fixture
def user() -> User:
    """Signed-in regular user for router tests."""
    from main import app

    user = User(
        id="user-1",
        email="fan@example.com",
        name="Fan",
        role=UserRole.USER,
        created_at=utc(2026, 1, 5),
    )
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_optional_user] = lambda: user
    return user


@pytest.fixture
def db() -> AsyncMock:
    """Mocked AsyncSession; each test scripts ``db.execute`` with ``db_result``."""
    from main import app

    db = AsyncMock()
    db.add = MagicMock()
    db.execute.return_value = db_result()
    app.dependency_overrides[get_db] = lambda: db
    return db
