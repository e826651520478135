"""Database models."""

from database import Base

# Core models
from models.user import User, UserRole

# Directory models
from models.channel import Channel, ChannelClick
from models.channel_history import ChannelHistory, StatsPeriod
from models.bookmark import Bookmark, BookmarkLike, BookmarkStatus

# Cache models
from models.youtube_cache import YouTubeChannelCache

__all__ = [
    # Base
    "Base",
    # Core
    "User",
    "UserRole",
    # Directory
    "Channel",
    "ChannelClick",
    "ChannelHistory",
    "StatsPeriod",
    "Bookmark",
    "BookmarkLike",
    "BookmarkStatus",
    # Cache
    "YouTubeChannelCache",
]
