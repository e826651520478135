"""ChannelHistory model - weekly/monthly statistics snapshots per channel."""

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class StatsPeriod(str, enum.Enum):
    """Roll-up period types."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ChannelHistory(Base):
    """Snapshot of a channel's metrics for one period window.

    One row per (channel, period, start_date). Re-running a roll-up for the
    same window updates the numeric fields in place.
    """

    __tablename__ = "channel_history"
    __table_args__ = (
        UniqueConstraint("channel_id", "period", "start_date", name="uix_channel_history_key"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4())
    )
    channel_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("channels.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    period: Mapped[StatsPeriod] = mapped_column(
        Enum(StatsPeriod, name="stats_period", values_callable=lambda enum: [e.value for e in enum]),
        nullable=False
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Metrics
    subscription_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    click_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subscription_growth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    click_growth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<ChannelHistory {self.channel_id} {self.period.value} "
            f"{self.start_date:%Y-%m-%d}: {self.click_count} clicks>"
        )
