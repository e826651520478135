"""Tests for profile settings of the signed-in user."""

from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from conftest import db_result


async def test_get_me_counts_owned_channels(client: AsyncClient, user, db):
    db.execute.return_value = db_result(scalar=3)

    response = await client.get("/api/users/me")

    assert response.status_code == 200
    assert response.json()["channel_count"] == 3
    assert response.json()["role"] == "user"


async def test_update_me_keeps_channel_count(client: AsyncClient, user, db):
    db.execute.side_effect = [db_result(first=None), db_result(scalar=2)]

    response = await client.patch("/api/users/me", json={"name": "New Name", "email": "new@example.com"})

    assert response.status_code == 200
    body = response.json()
    assert (body["name"], body["email"]) == ("New Name", "new@example.com")
    assert body["channel_count"] == 2
    db.commit.assert_awaited_once()
    db.refresh.assert_awaited_once_with(user)


async def test_update_me_email_taken(client: AsyncClient, user, db):
    db.execute.return_value = db_result(first=("user-2",))

    response = await client.patch("/api/users/me", json={"name": "Fan", "email": "taken@example.com"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Email already in use"
    assert user.email == "fan@example.com"
    db.commit.assert_not_awaited()


async def test_update_me_concurrent_email_taken(client: AsyncClient, user, db):
    db.commit.side_effect = IntegrityError("UPDATE", {}, Exception("duplicate key"))

    response = await client.patch("/api/users/me", json={"name": "Fan", "email": "taken@example.com"})

    assert response.status_code == 409
    db.rollback.assert_awaited_once()


async def test_update_me_rejects_invalid_email(client: AsyncClient, user, db):
    response = await client.patch("/api/users/me", json={"name": "Fan", "email": "not-an-email"})

    assert response.status_code == 422
    db.execute.assert_not_awaited()
