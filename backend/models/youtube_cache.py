"""YouTubeChannelCache model - cached YouTube channel lookups."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class YouTubeChannelCache(Base):
    """Cached YouTube channel metadata, one row per YouTube channel id.

    Stores fetched stats to avoid hitting API quota.
    """

    __tablename__ = "youtube_channel_cache"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4())
    )
    channel_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True
    )
    channel_title: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    subscriber_count: Mapped[int] = mapped_column(Integer, default=0)

    # Sync metadata
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def is_stale(self, ttl_minutes: int, now: datetime | None = None) -> bool:
        """True when the row is older than ``ttl_minutes`` or was never synced."""
        if self.last_synced_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        synced = self.last_synced_at
        if synced.tzinfo is None:
            synced = synced.replace(tzinfo=timezone.utc)
        return now - synced >= timedelta(minutes=ttl_minutes)

    def __repr__(self) -> str:
        return f"<YouTubeChannelCache {self.channel_title}: {self.subscriber_count} subscribers>"
