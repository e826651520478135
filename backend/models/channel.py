"""Channel directory models - listed channels and the support clicks they receive."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class Channel(Base):
    """A YouTube channel listed in the directory.

    ``subscription_count`` is edited by the owner. Statistics read it when
    writing history snapshots but never write it.
    """

    __tablename__ = "channels"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4())
    )
    channel_link: Mapped[str] = mapped_column(Text, nullable=False)
    channel_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    subscription_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    creator: Mapped["User"] = relationship("User", back_populates="channels")
    clicks: Mapped[list["ChannelClick"]] = relationship(
        "ChannelClick",
        back_populates="channel",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Channel {self.channel_name}: {self.subscription_count} subscribers>"


class ChannelClick(Base):
    """A support click. Append-only; one per user per channel."""

    __tablename__ = "channel_clicks"
    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uix_channel_clicks_channel_user"),
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
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    clicked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    # Relationships
    channel: Mapped[Channel] = relationship("Channel", back_populates="clicks")
    user: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<ChannelClick {self.user_id} -> {self.channel_id}>"


# Import at bottom to avoid circular imports
from models.user import User
