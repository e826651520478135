"""Store interfaces used by the statistics roll-up engine.

The engine never touches a session directly. It asks a stores factory for a
``StatsStores`` bundle (one unit of work), reads channels and clicks through
it, and writes exactly one history row. ``sql_stats_stores`` is the
PostgreSQL-backed factory; tests substitute in-memory fakes.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncContextManager, AsyncIterator, Callable, NamedTuple, Protocol
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import async_session
from exceptions import StoreUnavailable
from models.channel import Channel, ChannelClick
from models.channel_history import ChannelHistory, StatsPeriod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelStatsPeriod:
    """Computed statistics for one channel and one period window."""
    channel_id: str
    period: StatsPeriod
    start_date: datetime
    end_date: datetime
    subscription_count: int
    click_count: int
    subscription_growth: int
    click_growth: int


class ChannelStore(Protocol):
    async def get(self, channel_id: str) -> Channel | None: ...

    async def list_ids(self) -> list[str]: ...


class ClickLog(Protocol):
    async def count_in_range(self, channel_id: str, start: datetime, end: datetime) -> int: ...


class HistoryStore(Protocol):
    async def find_by_key(
        self, channel_id: str, period: StatsPeriod, start_date: datetime
    ) -> ChannelHistory | None: ...

    async def upsert(self, stats: ChannelStatsPeriod) -> ChannelHistory: ...


class StatsStores(NamedTuple):
    channels: ChannelStore
    clicks: ClickLog
    history: HistoryStore


StoresFactory = Callable[[], AsyncContextManager[StatsStores]]


# ============== SQLAlchemy implementations ==============

def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


class SqlChannelStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, channel_id: str) -> Channel | None:
        if not _is_uuid(channel_id):
            return None
        return await self.db.get(Channel, channel_id)

    async def list_ids(self) -> list[str]:
        result = await self.db.execute(select(Channel.id).order_by(Channel.created_at))
        return [row[0] for row in result.fetchall()]


class SqlClickLog:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_in_range(self, channel_id: str, start: datetime, end: datetime) -> int:
        result = await self.db.execute(
            select(func.count(ChannelClick.id)).where(
                ChannelClick.channel_id == channel_id,
                ChannelClick.clicked_at >= start,
                ChannelClick.clicked_at <= end,
            )
        )
        return result.scalar_one()


class SqlHistoryStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_key(
        self, channel_id: str, period: StatsPeriod, start_date: datetime
    ) -> ChannelHistory | None:
        result = await self.db.execute(
            select(ChannelHistory).where(
                ChannelHistory.channel_id == channel_id,
                ChannelHistory.period == period,
                ChannelHistory.start_date == start_date,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(self, stats: ChannelStatsPeriod) -> ChannelHistory:
        """Insert the snapshot or overwrite its metrics in one statement.

        ON CONFLICT on the (channel_id, period, start_date) constraint keeps
        concurrent roll-ups of the same window from duplicating the row.
        """
        metrics = {
            "subscription_count": stats.subscription_count,
            "click_count": stats.click_count,
            "subscription_growth": stats.subscription_growth,
            "click_growth": stats.click_growth,
        }
        stmt = (
            insert(ChannelHistory)
            .values(
                id=str(uuid4()),
                channel_id=stats.channel_id,
                period=stats.period,
                start_date=stats.start_date,
                end_date=stats.end_date,
                created_at=datetime.now(timezone.utc),
                **metrics,
            )
            .on_conflict_do_update(
                constraint="uix_channel_history_key",
                set_=metrics,
            )
            .returning(ChannelHistory)
        )
        result = await self.db.execute(
            stmt, execution_options={"populate_existing": True}
        )
        return result.scalar_one()


def sql_stats_stores(
    session_factory: async_sessionmaker[AsyncSession] = async_session,
) -> StoresFactory:
    """Build a stores factory that opens one session per unit of work.

    The session commits when the unit of work finishes cleanly. Any
    SQLAlchemy error is rolled back and re-raised as ``StoreUnavailable``.
    """

    @asynccontextmanager
    async def _unit_of_work() -> AsyncIterator[StatsStores]:
        async with session_factory() as session:
            try:
                yield StatsStores(
                    channels=SqlChannelStore(session),
                    clicks=SqlClickLog(session),
                    history=SqlHistoryStore(session),
                )
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Statistics store error: {e}")
                await session.rollback()
                raise StoreUnavailable(f"Statistics store error: {e.__class__.__name__}") from e

    return _unit_of_work
