"""Users router - profile settings for the signed-in user, listing for admins."""

import logging
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from middleware.auth import get_current_user, require_roles
from models.channel import Channel
from models.user import User, UserRole

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


# Request/Response schemas
class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str]
    image: Optional[str]
    role: str
    created_at: datetime
    channel_count: int = 0


class ProfileUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


def _to_response(user: User, channel_count: int = 0) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        role=user.role.value,
        created_at=user.created_at,
        channel_count=channel_count,
    )


async def _channel_count(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(Channel.id)).where(Channel.created_by == user_id)
    )
    return result.scalar_one()


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Current user's profile."""
    return _to_response(current_user, await _channel_count(db, current_user.id))


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Update name and email."""
    result = await db.execute(
        select(User.id).where(User.email == data.email, User.id != current_user.id)
    )
    if result.first() is not None:
        raise HTTPException(status_code=409, detail="Email already in use")

    current_user.name = data.name
    current_user.email = data.email
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already in use")

    await db.refresh(current_user)
    return _to_response(current_user, await _channel_count(db, current_user.id))


@router.delete("/me", response_model=MessageResponse)
async def delete_me(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Delete the account with its channels, clicks, bookmarks and likes."""
    user_id = current_user.id
    await db.delete(current_user)
    await db.commit()
    logger.info(f"User {user_id} deleted their account")
    return MessageResponse(message="Account deleted")


@router.get("", response_model=list[UserResponse])
async def list_users(
    current_user: Annotated[User, Depends(require_roles(UserRole.ADMIN))],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List all users with channel counts (admin only)."""
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    users = result.scalars().all()

    # Get channel counts per user in a single query
    count_result = await db.execute(
        select(Channel.created_by, func.count(Channel.id)).group_by(Channel.created_by)
    )
    counts = dict(count_result.fetchall())

    return [_to_response(u, counts.get(u.id, 0)) for u in users]
