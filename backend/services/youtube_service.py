"""YouTube Data API service.

Resolves a video to the channel that uploaded it and fetches that channel's
public metadata, so a directory entry can be pre-filled from a video link.
Uses API key auth (no OAuth needed for public data).
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import parse_qs, urlparse

import httpx
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import ExternalServiceError
from models.youtube_cache import YouTubeChannelCache

logger = logging.getLogger(__name__)

YT_API_BASE = "https://www.googleapis.com/youtube/v3"
YT_CHANNEL_URL = "https://www.youtube.com/channel/{channel_id}"

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
VIDEO_PATH_PREFIXES = ("/shorts/", "/embed/", "/live/", "/v/")


def extract_video_id(value: Optional[str]) -> Optional[str]:
    """Return the video id from a bare id or any common YouTube video URL."""
    if not value:
        return None
    value = value.strip()
    if VIDEO_ID_RE.match(value):
        return value

    parsed = urlparse(value if "://" in value else f"https://{value}")
    host = (parsed.hostname or "").lower()
    candidate = None

    if host == "youtu.be" or host.endswith(".youtu.be"):
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host == "youtube.com" or host.endswith(".youtube.com"):
        if parsed.path == "/watch":
            candidate = parse_qs(parsed.query).get("v", [None])[0]
        else:
            for prefix in VIDEO_PATH_PREFIXES:
                if parsed.path.startswith(prefix):
                    candidate = parsed.path[len(prefix):].split("/")[0]
                    break

    if candidate and VIDEO_ID_RE.match(candidate):
        return candidate
    return None


def _raise_for_api_error(response: httpx.Response, what: str) -> None:
    if response.status_code == 200:
        return
    if response.status_code == 403:
        logger.warning(f"YouTube API quota exceeded or key invalid: {response.text}")
    else:
        logger.warning(f"Failed to fetch YouTube {what}: {response.status_code} - {response.text}")
    raise ExternalServiceError(f"YouTube API error fetching {what}", response.status_code)


async def fetch_video_channel_id(
    api_key: str, video_id: str, client: httpx.AsyncClient
) -> Optional[str]:
    """Return the id of the channel that uploaded ``video_id``, or None."""
    response = await client.get(
        f"{YT_API_BASE}/videos",
        params={"part": "snippet", "id": video_id, "key": api_key},
    )
    _raise_for_api_error(response, "video")

    items = response.json().get("items", [])
    if not items:
        logger.warning(f"No YouTube video found for ID {video_id}")
        return None
    return items[0].get("snippet", {}).get("channelId")


async def fetch_channel_stats(
    api_key: str, channel_id: str, client: httpx.AsyncClient
) -> Optional[dict]:
    """Fetch channel snippet and statistics from YouTube Data API v3.

    Returns None when the channel does not exist.
    """
    response = await client.get(
        f"{YT_API_BASE}/channels",
        params={
            "part": "statistics,snippet",
            "id": channel_id,
            "key": api_key,
        },
    )
    _raise_for_api_error(response, "channel")

    items = response.json().get("items", [])
    if not items:
        logger.warning(f"No YouTube channel found for ID {channel_id}")
        return None

    channel = items[0]
    snippet = channel.get("snippet", {})
    statistics = channel.get("statistics", {})
    thumbnails = snippet.get("thumbnails", {})

    stats = {
        "channel_id": channel_id,
        "channel_title": snippet.get("title"),
        "description": snippet.get("description"),
        "thumbnail_url": (
            thumbnails.get("high", {}).get("url")
            or thumbnails.get("default", {}).get("url")
        ),
        # Hidden subscriber counts are omitted from the response
        "subscriber_count": int(statistics.get("subscriberCount", 0)),
    }
    logger.info(
        f"YouTube stats fetched for {stats['channel_title']}: "
        f"{stats['subscriber_count']} subscribers"
    )
    return stats


def _channel_payload(channel_id: str, title: Optional[str], description: Optional[str], subscribers: int) -> dict:
    return {
        "channel_id": channel_id,
        "channel_link": YT_CHANNEL_URL.format(channel_id=channel_id),
        "channel_name": title or "",
        "description": description or "",
        "subscription_count": subscribers,
    }


async def _cache_channel(db: AsyncSession, stats: dict) -> None:
    """Upsert the cache row for a freshly fetched channel."""
    result = await db.execute(
        select(YouTubeChannelCache).where(
            YouTubeChannelCache.channel_id == stats["channel_id"]
        )
    )
    existing = result.scalar_one_or_none()
    now = datetime.now(timezone.utc)

    if existing:
        existing.channel_title = stats["channel_title"]
        existing.description = stats["description"]
        existing.thumbnail_url = stats["thumbnail_url"]
        existing.subscriber_count = stats["subscriber_count"]
        existing.last_synced_at = now
    else:
        db.add(YouTubeChannelCache(
            channel_id=stats["channel_id"],
            channel_title=stats["channel_title"],
            description=stats["description"],
            thumbnail_url=stats["thumbnail_url"],
            subscriber_count=stats["subscriber_count"],
            last_synced_at=now,
        ))

    try:
        await db.commit()
    except IntegrityError:
        # Another request cached the same channel first
        await db.rollback()


async def lookup_channel_for_video(
    db: AsyncSession,
    api_key: str,
    video_id: str,
    cache_ttl_minutes: int,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[dict]:
    """Resolve a video to its channel's directory fields.

    The channel step is served from ``youtube_channel_cache`` while the row is
    fresh. Returns None when the video or channel does not exist; raises
    ExternalServiceError when the API call fails.
    """

    async def _lookup(c: httpx.AsyncClient) -> Optional[dict]:
        channel_id = await fetch_video_channel_id(api_key, video_id, c)
        if not channel_id:
            return None

        result = await db.execute(
            select(YouTubeChannelCache).where(
                YouTubeChannelCache.channel_id == channel_id
            )
        )
        cached = result.scalar_one_or_none()
        if cached and not cached.is_stale(cache_ttl_minutes):
            logger.info(f"YouTube channel {channel_id} served from cache")
            return _channel_payload(
                channel_id, cached.channel_title, cached.description, cached.subscriber_count
            )

        stats = await fetch_channel_stats(api_key, channel_id, c)
        if stats is None:
            return None
        await _cache_channel(db, stats)
        return _channel_payload(
            channel_id, stats["channel_title"], stats["description"], stats["subscriber_count"]
        )

    try:
        if client:
            return await _lookup(client)
        async with httpx.AsyncClient(timeout=20) as c:
            return await _lookup(c)
    except httpx.HTTPError as e:
        logger.warning(f"Failed to reach YouTube API: {e}")
        raise ExternalServiceError(f"Failed to reach YouTube API: {e.__class__.__name__}") from e
