"""Routers package."""

from .bookmarks import router as bookmarks_router
from .channels import router as channels_router
from .cron import router as cron_router
from .metadata import router as metadata_router
from .users import router as users_router
from .youtube import router as youtube_router

__all__ = [
    "bookmarks_router",
    "channels_router",
    "cron_router",
    "metadata_router",
    "users_router",
    "youtube_router",
]
