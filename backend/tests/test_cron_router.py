"""Tests for the cron statistics endpoint."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from exceptions import StoreUnavailable
from main import app
from services.stats_rollup import get_rollup_engine


@pytest.fixture
def override_engine(engine):
    app.dependency_overrides[get_rollup_engine] = lambda: engine
    return engine


async def test_generate_stats_rolls_up_all_channels(client: AsyncClient, override_engine, stats_state):
    stats_state.add_channel("ch-1", subscription_count=100)
    stats_state.add_channel("ch-2", subscription_count=5)

    response = await client.get("/api/cron/generate-stats")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "periods": {
            "weekly": {"written": 2, "failed": 0},
            "monthly": {"written": 2, "failed": 0},
        },
    }
    assert len(stats_state.history) == 4


async def test_generate_stats_reports_success_with_partial_failure(
    client: AsyncClient, override_engine, stats_state
):
    stats_state.add_channel("ch-1")
    stats_state.add_channel("ch-2")
    stats_state.listed_ids = ["ch-1", "ch-gone", "ch-2"]

    response = await client.get("/api/cron/generate-stats")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["periods"]["weekly"] == {"written": 2, "failed": 1}


async def test_generate_stats_respects_configured_periods(
    client: AsyncClient, override_engine, stats_state, settings_env
):
    settings_env(stats_cron_periods='["weekly"]')
    stats_state.add_channel("ch-1")

    response = await client.get("/api/cron/generate-stats")

    assert list(response.json()["periods"]) == ["weekly"]


async def test_generate_stats_returns_500_when_listing_fails(client: AsyncClient):
    engine = AsyncMock()
    engine.roll_up_periods.side_effect = StoreUnavailable()
    app.dependency_overrides[get_rollup_engine] = lambda: engine

    response = await client.get("/api/cron/generate-stats")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to generate stats"}


async def test_cron_secret_required_when_configured(client: AsyncClient, override_engine, settings_env):
    settings_env(cron_secret="s3cret")

    missing = await client.get("/api/cron/generate-stats")
    wrong = await client.get(
        "/api/cron/generate-stats", headers={"Authorization": "Bearer nope"}
    )
    ok = await client.get(
        "/api/cron/generate-stats", headers={"Authorization": "Bearer s3cret"}
    )

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert missing.json()["detail"] == "Invalid cron secret"
    assert ok.status_code == 200
