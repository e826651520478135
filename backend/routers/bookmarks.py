"""Bookmarks router - personal saved links, public sharing and likes."""

import logging
import math
from datetime import datetime, timezone
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import and_, desc, exists, func, literal, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from middleware.auth import get_current_user, get_optional_user
from models.bookmark import Bookmark, BookmarkLike, BookmarkStatus
from models.user import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


# ============== Schemas ==============

class BookmarkCreate(BaseModel):
    url: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    status: BookmarkStatus = BookmarkStatus.PRIVATE


class BookmarkUpdate(BaseModel):
    url: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[BookmarkStatus] = None


class BookmarkResponse(BaseModel):
    id: str
    url: str
    title: str
    description: Optional[str]
    status: BookmarkStatus
    user_id: str
    created_at: datetime
    updated_at: datetime
    like_count: int = 0
    is_liked: bool = False


class BookmarkPage(BaseModel):
    bookmarks: list[BookmarkResponse]
    total: int
    total_pages: int
    page: int


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class MessageResponse(BaseModel):
    message: str


# ============== Helpers ==============

def _visibility_filter(user: Optional[User], show_all_public: bool):
    """Which bookmarks a caller may list.

    Signed-in users see their own (all of them), or with show_all_public also
    everybody's public ones. Guests see public bookmarks only.
    """
    if user is not None and not show_all_public:
        return Bookmark.user_id == user.id
    if user is not None:
        return or_(
            Bookmark.status == BookmarkStatus.PUBLIC,
            and_(Bookmark.status == BookmarkStatus.PRIVATE, Bookmark.user_id == user.id),
        )
    return Bookmark.status == BookmarkStatus.PUBLIC


def _with_like_columns(user: Optional[User]):
    like_count = (
        select(func.count(BookmarkLike.id))
        .where(BookmarkLike.bookmark_id == Bookmark.id)
        .correlate(Bookmark)
        .scalar_subquery()
    )
    if user is not None:
        is_liked = exists().where(
            BookmarkLike.bookmark_id == Bookmark.id,
            BookmarkLike.user_id == user.id,
        )
    else:
        is_liked = literal(False)
    return select(Bookmark, like_count.label("like_count"), is_liked.label("is_liked"))


def _to_response(bookmark: Bookmark, like_count: int, is_liked: bool) -> BookmarkResponse:
    return BookmarkResponse(
        id=bookmark.id,
        url=bookmark.url,
        title=bookmark.title,
        description=bookmark.description,
        status=bookmark.status,
        user_id=bookmark.user_id,
        created_at=bookmark.created_at,
        updated_at=bookmark.updated_at,
        like_count=like_count or 0,
        is_liked=bool(is_liked),
    )


def _validate_bookmark_id(bookmark_id: str) -> str:
    try:
        return str(UUID(bookmark_id))
    except ValueError:
        raise HTTPException(status_code=404, detail="Bookmark not found")


async def _get_owned_bookmark(db: AsyncSession, bookmark_id: str, user: User) -> Bookmark:
    result = await db.execute(
        select(Bookmark).where(
            Bookmark.id == _validate_bookmark_id(bookmark_id),
            Bookmark.user_id == user.id,
        )
    )
    bookmark = result.scalar_one_or_none()
    if not bookmark:
        raise HTTPException(status_code=404, detail="Bookmark not found or unauthorized")
    return bookmark


async def _load_with_likes(db: AsyncSession, bookmark_id: str, user: User) -> BookmarkResponse:
    result = await db.execute(
        _with_like_columns(user)
        .where(Bookmark.id == bookmark_id)
        .execution_options(populate_existing=True)
    )
    bookmark, like_count, is_liked = result.one()
    return _to_response(bookmark, like_count, is_liked)


# ============== Endpoints ==============

@router.get("", response_model=BookmarkPage)
async def list_bookmarks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[Optional[User], Depends(get_optional_user)],
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    show_all_public: bool = False,
):
    """Paginated bookmarks visible to the caller, newest first."""
    where = _visibility_filter(current_user, show_all_public)

    total = (
        await db.execute(select(func.count(Bookmark.id)).where(where))
    ).scalar_one()

    result = await db.execute(
        _with_like_columns(current_user)
        .where(where)
        .order_by(desc(Bookmark.created_at))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    bookmarks = [_to_response(b, count, liked) for b, count, liked in result.all()]

    return BookmarkPage(
        bookmarks=bookmarks,
        total=total,
        total_pages=math.ceil(total / limit),
        page=page,
    )


@router.post("", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
async def create_bookmark(
    data: BookmarkCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Save a link. A user cannot save the same URL twice."""
    result = await db.execute(
        select(Bookmark.id).where(
            Bookmark.url == data.url,
            Bookmark.user_id == current_user.id,
        )
    )
    if result.first() is not None:
        raise HTTPException(status_code=409, detail="Bookmark with this URL already exists")

    bookmark = Bookmark(**data.model_dump(), user_id=current_user.id)
    db.add(bookmark)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Bookmark with this URL already exists")

    return _to_response(bookmark, 0, False)


@router.patch("/{bookmark_id}", response_model=BookmarkResponse)
async def update_bookmark(
    bookmark_id: str,
    data: BookmarkUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Edit a bookmark (owner only)."""
    bookmark = await _get_owned_bookmark(db, bookmark_id, current_user)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None or field == "description":
            setattr(bookmark, field, value)
    bookmark.updated_at = datetime.now(timezone.utc)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Bookmark with this URL already exists")

    return await _load_with_likes(db, bookmark.id, current_user)


@router.delete("/{bookmark_id}", response_model=MessageResponse)
async def delete_bookmark(
    bookmark_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Delete a bookmark (owner only)."""
    bookmark = await _get_owned_bookmark(db, bookmark_id, current_user)
    await db.delete(bookmark)
    await db.commit()
    return MessageResponse(message="Bookmark deleted")


@router.post("/{bookmark_id}/like", response_model=LikeResponse)
async def toggle_bookmark_like(
    bookmark_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Like a bookmark, or remove the like if it is already there."""
    bookmark_id = _validate_bookmark_id(bookmark_id)
    result = await db.execute(
        select(Bookmark.id).where(
            Bookmark.id == bookmark_id,
            _visibility_filter(current_user, show_all_public=True),
        )
    )
    if result.first() is None:
        raise HTTPException(status_code=404, detail="Bookmark not found")

    result = await db.execute(
        select(BookmarkLike).where(
            BookmarkLike.bookmark_id == bookmark_id,
            BookmarkLike.user_id == current_user.id,
        )
    )
    existing = result.scalar_one_or_none()

    if existing:
        await db.delete(existing)
        liked = False
    else:
        db.add(BookmarkLike(bookmark_id=bookmark_id, user_id=current_user.id))
        liked = True

    try:
        await db.commit()
    except IntegrityError:
        # Concurrent like from the same user already landed
        await db.rollback()
        liked = True

    like_count = (
        await db.execute(
            select(func.count(BookmarkLike.id)).where(BookmarkLike.bookmark_id == bookmark_id)
        )
    ).scalar_one()
    return LikeResponse(liked=liked, like_count=like_count)
