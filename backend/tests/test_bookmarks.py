"""Tests for bookmark visibility rules, saving, likes and paging."""

import pytest
from httpx import AsyncClient
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from models.bookmark import Bookmark, BookmarkLike, BookmarkStatus
from models.user import User
from routers.bookmarks import _visibility_filter
from conftest import db_result, utc

BOOKMARK_ID = "9a7c1d2e-4b5f-4c6d-8e9f-0a1b2c3d4e5f"


def compiled(clause) -> str:
    return str(clause.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))


def make_bookmark(**overrides) -> Bookmark:
    values = dict(
        id=BOOKMARK_ID,
        url="https://example.com",
        title="Example",
        description=None,
        status=BookmarkStatus.PUBLIC,
        user_id="user-2",
        created_at=utc(2026, 10, 1),
        updated_at=utc(2026, 10, 1),
    )
    values.update(overrides)
    return Bookmark(**values)


# ============== Visibility ==============

def test_guest_sees_public_only():
    sql = compiled(_visibility_filter(None, show_all_public=True))

    assert sql == "bookmarks.status = 'public'"


def test_user_sees_own_bookmarks():
    sql = compiled(_visibility_filter(User(id="user-1", email="u@example.com"), show_all_public=False))

    assert sql == "bookmarks.user_id = 'user-1'"


def test_user_with_public_feed_sees_public_and_own_private():
    sql = compiled(_visibility_filter(User(id="user-1", email="u@example.com"), show_all_public=True))

    assert "bookmarks.status = 'public' OR" in sql
    assert "bookmarks.status = 'private' AND bookmarks.user_id = 'user-1'" in sql


# ============== Saving ==============

async def test_create_requires_authentication(client: AsyncClient):
    response = await client.post("/api/bookmarks", json={"url": "https://example.com", "title": "Example"})

    assert response.status_code in (401, 403)


async def test_create_bookmark(client: AsyncClient, user, db):
    def flush_defaults():
        bookmark = db.add.call_args.args[0]
        bookmark.id = BOOKMARK_ID
        bookmark.created_at = bookmark.updated_at = utc(2026, 10, 14)

    db.commit.side_effect = flush_defaults

    response = await client.post("/api/bookmarks", json={"url": "https://example.com", "title": "Example"})

    assert response.status_code == 201
    body = response.json()
    assert (body["user_id"], body["status"]) == ("user-1", "private")
    assert (body["like_count"], body["is_liked"]) == (0, False)


async def test_create_duplicate_url_rejected(client: AsyncClient, user, db):
    db.execute.return_value = db_result(first=(BOOKMARK_ID,))

    response = await client.post("/api/bookmarks", json={"url": "https://example.com", "title": "Again"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Bookmark with this URL already exists"
    db.add.assert_not_called()


async def test_create_concurrent_duplicate_rejected(client: AsyncClient, user, db):
    db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

    response = await client.post("/api/bookmarks", json={"url": "https://example.com", "title": "Again"})

    assert response.status_code == 409
    db.rollback.assert_awaited_once()


# ============== Likes ==============

async def test_like_added(client: AsyncClient, user, db):
    db.execute.side_effect = [
        db_result(first=(BOOKMARK_ID,)),
        db_result(one_or_none=None),
        db_result(scalar=4),
    ]

    response = await client.post(f"/api/bookmarks/{BOOKMARK_ID}/like")

    assert response.status_code == 200
    assert response.json() == {"liked": True, "like_count": 4}
    like = db.add.call_args.args[0]
    assert (like.bookmark_id, like.user_id) == (BOOKMARK_ID, "user-1")
    db.delete.assert_not_awaited()


async def test_like_removed_when_already_liked(client: AsyncClient, user, db):
    existing = BookmarkLike(bookmark_id=BOOKMARK_ID, user_id="user-1")
    db.execute.side_effect = [
        db_result(first=(BOOKMARK_ID,)),
        db_result(one_or_none=existing),
        db_result(scalar=3),
    ]

    response = await client.post(f"/api/bookmarks/{BOOKMARK_ID}/like")

    assert response.status_code == 200
    assert response.json() == {"liked": False, "like_count": 3}
    db.delete.assert_awaited_once_with(existing)
    db.add.assert_not_called()


async def test_like_on_private_bookmark_of_another_user(client: AsyncClient, user, db):
    db.execute.return_value = db_result(first=None)

    response = await client.post(f"/api/bookmarks/{BOOKMARK_ID}/like")

    assert response.status_code == 404
    assert response.json()["detail"] == "Bookmark not found"
    lookup = db.execute.call_args.args[0].compile(dialect=postgresql.dialect())
    assert "bookmarks.status = " in str(lookup)
    assert {BookmarkStatus.PUBLIC, BookmarkStatus.PRIVATE, "user-1"} <= set(lookup.params.values())
    db.add.assert_not_called()
    db.commit.assert_not_awaited()


async def test_like_malformed_id_not_found(client: AsyncClient, user, db):
    response = await client.post("/api/bookmarks/not-a-uuid/like")

    assert response.status_code == 404
    db.execute.assert_not_awaited()


# ============== Paging ==============

@pytest.mark.parametrize("total,expected_pages", [(21, 3), (20, 2), (0, 0)])
async def test_list_total_pages(client: AsyncClient, user, db, total, expected_pages):
    db.execute.side_effect = [
        db_result(scalar=total),
        db_result(rows=[(make_bookmark(), 2, True)] if total else []),
    ]

    response = await client.get("/api/bookmarks", params={"page": 1, "limit": 10, "show_all_public": True})

    assert response.status_code == 200
    body = response.json()
    assert (body["total"], body["total_pages"], body["page"]) == (total, expected_pages, 1)
    if total:
        assert body["bookmarks"][0]["like_count"] == 2
        assert body["bookmarks"][0]["is_liked"] is True


async def test_list_offsets_by_page(client: AsyncClient, user, db):
    db.execute.side_effect = [db_result(scalar=25), db_result(rows=[])]

    response = await client.get("/api/bookmarks", params={"page": 3, "limit": 10})

    assert response.status_code == 200
    page_query = db.execute.call_args_list[1].args[0].compile(dialect=postgresql.dialect())
    assert "OFFSET" in str(page_query)
    assert 20 in page_query.params.values()
