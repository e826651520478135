"""Bookmark models - personal saved links, optionally shared publicly and liked."""

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class BookmarkStatus(str, enum.Enum):
    """Bookmark visibility."""
    PRIVATE = "private"
    PUBLIC = "public"


class Bookmark(Base):
    """A saved link. A user cannot save the same URL twice."""

    __tablename__ = "bookmarks"
    __table_args__ = (
        UniqueConstraint("user_id", "url", name="uix_bookmarks_user_url"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4())
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[BookmarkStatus] = mapped_column(
        Enum(BookmarkStatus, name="bookmark_status", values_callable=lambda enum: [e.value for e in enum]),
        default=BookmarkStatus.PRIVATE,
        nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

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
    user: Mapped["User"] = relationship("User", back_populates="bookmarks")
    likes: Mapped[list["BookmarkLike"]] = relationship(
        "BookmarkLike",
        back_populates="bookmark",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Bookmark {self.title} ({self.status.value})>"


class BookmarkLike(Base):
    """A like on a bookmark. One per user per bookmark."""

    __tablename__ = "bookmark_likes"
    __table_args__ = (
        UniqueConstraint("bookmark_id", "user_id", name="uix_bookmark_likes_bookmark_user"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4())
    )
    bookmark_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("bookmarks.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    bookmark: Mapped[Bookmark] = relationship("Bookmark", back_populates="likes")

    def __repr__(self) -> str:
        return f"<BookmarkLike {self.user_id} on {self.bookmark_id}>"


# Import at bottom to avoid circular imports
from models.user import User
