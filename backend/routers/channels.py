"""Channels router - directory entries, support clicks and channel statistics.

Clicks and edits publish a ChannelChanged event after they are committed; the
statistics handler regenerates weekly and monthly history from it. Failures in
that handler never change the response of the action itself.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field
from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database import get_db
from exceptions import ChannelNotFound, StoreUnavailable
from middleware.auth import get_current_user
from middleware.rate_limit import limiter
from models.channel import Channel, ChannelClick
from models.channel_history import ChannelHistory, StatsPeriod
from models.user import User
from services.stats_events import ChannelChanged, ChannelEventBus, get_channel_events
from services.stats_rollup import RollupEngine, get_rollup_engine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/channels", tags=["channels"])


# ============== Schemas ==============

class UserSummary(BaseModel):
    id: str
    name: Optional[str]
    email: str
    image: Optional[str]

    class Config:
        from_attributes = True


class Supporter(BaseModel):
    """A user who clicked (supported) a channel."""
    user: Optional[UserSummary]
    clicked_at: datetime


class ChannelResponse(BaseModel):
    id: str
    channel_link: str
    channel_name: str
    description: str
    subscription_count: int
    created_by: str
    created_at: datetime
    updated_at: datetime
    created_by_user: Optional[UserSummary]
    click_count: int
    clicked_by: list[Supporter]


class ChannelCreate(BaseModel):
    channel_link: str = Field(min_length=1)
    channel_name: str = Field(min_length=1, max_length=255)
    description: str = ""
    subscription_count: int = Field(default=0, ge=0)


class ChannelUpdate(BaseModel):
    channel_link: Optional[str] = Field(default=None, min_length=1)
    channel_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    subscription_count: Optional[int] = Field(default=None, ge=0)


class HistoryResponse(BaseModel):
    id: str
    channel_id: str
    period: StatsPeriod
    start_date: datetime
    end_date: datetime
    subscription_count: int
    click_count: int
    subscription_growth: int
    click_growth: int
    created_at: datetime

    class Config:
        from_attributes = True


class GenerateStatsResponse(BaseModel):
    weekly: HistoryResponse
    monthly: HistoryResponse


class MessageResponse(BaseModel):
    message: str


# ============== Helpers ==============

def _validate_channel_id(channel_id: str) -> str:
    try:
        return str(UUID(channel_id))
    except ValueError:
        raise HTTPException(status_code=404, detail="Channel not found")


def _channel_query():
    return select(Channel).options(
        selectinload(Channel.creator),
        selectinload(Channel.clicks).selectinload(ChannelClick.user),
    )


async def _load_channel(db: AsyncSession, channel_id: str) -> Optional[Channel]:
    result = await db.execute(
        _channel_query()
        .where(Channel.id == channel_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_owned_channel(db: AsyncSession, channel_id: str, user: User) -> Channel:
    result = await db.execute(
        select(Channel).where(Channel.id == channel_id, Channel.created_by == user.id)
    )
    channel = result.scalar_one_or_none()
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found or unauthorized")
    return channel


def _to_response(channel: Channel) -> ChannelResponse:
    clicks = sorted(channel.clicks, key=lambda c: c.clicked_at, reverse=True)
    return ChannelResponse(
        id=channel.id,
        channel_link=channel.channel_link,
        channel_name=channel.channel_name,
        description=channel.description,
        subscription_count=channel.subscription_count,
        created_by=channel.created_by,
        created_at=channel.created_at,
        updated_at=channel.updated_at,
        created_by_user=UserSummary.model_validate(channel.creator) if channel.creator else None,
        click_count=len(clicks),
        clicked_by=[
            Supporter(
                user=UserSummary.model_validate(click.user) if click.user else None,
                clicked_at=click.clicked_at,
            )
            for click in clicks
        ],
    )


# ============== Directory ==============

@router.get("", response_model=list[ChannelResponse])
async def list_channels(
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List all channels, newest first, with click counts and supporters."""
    result = await db.execute(_channel_query().order_by(desc(Channel.created_at)))
    return [_to_response(channel) for channel in result.scalars().all()]


@router.get("/{channel_id}", response_model=ChannelResponse)
async def get_channel(
    channel_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get a single channel."""
    channel = await _load_channel(db, _validate_channel_id(channel_id))
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    return _to_response(channel)


@router.post("", response_model=ChannelResponse, status_code=status.HTTP_201_CREATED)
async def create_channel(
    data: ChannelCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Add a channel to the directory. The caller becomes its owner."""
    channel = Channel(**data.model_dump(), created_by=current_user.id)
    db.add(channel)
    await db.commit()
    logger.info(f"Channel {channel.id} ({channel.channel_name}) created by {current_user.id}")

    return _to_response(await _load_channel(db, channel.id))


@router.patch("/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    channel_id: str,
    data: ChannelUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    events: Annotated[ChannelEventBus, Depends(get_channel_events)],
):
    """Edit a channel (owner only), then regenerate its statistics."""
    channel = await _get_owned_channel(db, _validate_channel_id(channel_id), current_user)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(channel, field, value)
    channel.updated_at = datetime.now(timezone.utc)
    await db.commit()

    await events.publish(ChannelChanged(channel_id=channel.id, reason="edit"))

    return _to_response(await _load_channel(db, channel.id))


@router.delete("/{channel_id}", response_model=MessageResponse)
async def delete_channel(
    channel_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Delete a channel (owner only). Clicks and history go with it."""
    channel = await _get_owned_channel(db, _validate_channel_id(channel_id), current_user)
    await db.delete(channel)
    await db.commit()
    logger.info(f"Channel {channel_id} deleted by {current_user.id}")
    return MessageResponse(message="Channel deleted")


# ============== Support clicks ==============

@router.post("/{channel_id}/click", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def track_channel_click(
    request: Request,  # Required for rate limiting - must be named 'request'
    channel_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    events: Annotated[ChannelEventBus, Depends(get_channel_events)],
):
    """Record a support click. Each user can support a channel once."""
    channel_id = _validate_channel_id(channel_id)
    if await db.get(Channel, channel_id) is None:
        raise HTTPException(status_code=404, detail="Channel not found")

    result = await db.execute(
        select(ChannelClick.id).where(
            ChannelClick.channel_id == channel_id,
            ChannelClick.user_id == current_user.id,
        )
    )
    if result.first() is not None:
        raise HTTPException(status_code=409, detail="Already clicked this channel")

    db.add(ChannelClick(channel_id=channel_id, user_id=current_user.id))
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent click from the same user
        await db.rollback()
        raise HTTPException(status_code=409, detail="Already clicked this channel")

    await events.publish(ChannelChanged(channel_id=channel_id, reason="click"))
    return MessageResponse(message="Click recorded")


@router.get("/{channel_id}/supporters", response_model=list[Supporter])
async def get_channel_supporters(
    channel_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Users who supported a channel, most recent first."""
    channel = await _load_channel(db, _validate_channel_id(channel_id))
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    return _to_response(channel).clicked_by


# ============== Statistics ==============

@router.get("/{channel_id}/history", response_model=list[HistoryResponse])
async def get_channel_history(
    channel_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    period: StatsPeriod = StatsPeriod.WEEKLY,
    limit: int = Query(12, ge=1, le=104),
):
    """Stored history snapshots for a channel, newest window first."""
    channel_id = _validate_channel_id(channel_id)
    if await db.get(Channel, channel_id) is None:
        raise HTTPException(status_code=404, detail="Channel not found")

    result = await db.execute(
        select(ChannelHistory)
        .where(
            ChannelHistory.channel_id == channel_id,
            ChannelHistory.period == period,
        )
        .order_by(desc(ChannelHistory.start_date))
        .limit(limit)
    )
    return result.scalars().all()


@router.post("/{channel_id}/stats", response_model=GenerateStatsResponse)
async def generate_channel_stats(
    channel_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[RollupEngine, Depends(get_rollup_engine)],
):
    """Generate weekly and monthly statistics for a channel now."""
    try:
        snapshots = await engine.roll_up_channel(_validate_channel_id(channel_id))
    except ChannelNotFound:
        raise HTTPException(status_code=404, detail="Channel not found")
    except StoreUnavailable as e:
        logger.error(f"Stats generation for {channel_id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Statistics store unavailable, try again later",
        )

    logger.info(f"Stats generated for channel {channel_id} by {current_user.id}")
    return GenerateStatsResponse(
        weekly=HistoryResponse.model_validate(snapshots[StatsPeriod.WEEKLY]),
        monthly=HistoryResponse.model_validate(snapshots[StatsPeriod.MONTHLY]),
    )
