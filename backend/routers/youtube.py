"""YouTube router - look up a channel from one of its videos.

Lets the add-channel form pre-fill name, link, description and subscriber
count from a pasted video link. Uses the server-side API key.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import get_db
from exceptions import ExternalServiceError
from middleware.rate_limit import limiter
from services.youtube_service import extract_video_id, lookup_channel_for_video

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/youtube", tags=["youtube"])


class ChannelLookupResponse(BaseModel):
    channel_id: str
    channel_link: str
    channel_name: str
    description: str
    subscription_count: int


@router.get("/channel", response_model=ChannelLookupResponse)
@limiter.limit("20/minute")
async def get_channel_for_video(
    request: Request,  # Required for rate limiting - must be named 'request'
    db: Annotated[AsyncSession, Depends(get_db)],
    video_id: Annotated[Optional[str], Query(alias="videoId")] = None,
):
    """Resolve a video id (or video URL) to its channel's directory fields."""
    settings = get_settings()

    parsed_id = extract_video_id(video_id)
    if not parsed_id:
        raise HTTPException(status_code=400, detail="Video ID is required")

    if not settings.youtube_api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="YouTube API key not configured. Set YOUTUBE_API_KEY in .env.",
        )

    try:
        channel = await lookup_channel_for_video(
            db,
            settings.youtube_api_key,
            parsed_id,
            cache_ttl_minutes=settings.youtube_cache_ttl_minutes,
        )
    except ExternalServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch channel data: {e.message}",
        )

    if channel is None:
        raise HTTPException(status_code=404, detail="Video or channel not found")
    return channel
