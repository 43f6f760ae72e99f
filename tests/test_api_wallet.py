"""Tests for wallet API endpoints.

Covers the wallet snapshot, redeem (by cost and by reward id), stake and
the savings tier view.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.api.wallet import router
from app.core.database import get_db
from app.services.catalog import MetricDefinition, build_catalog
from app.services.generator import ActivityGenerator
from app.services.ledger import get_ledger

from conftest import TEST_DATE


def _make_test_app(session, ledger):
    app = FastAPI()
    app.include_router(router)

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger] = lambda: ledger
    return app


def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def _fund(session, ledger, user_id, raw_steps):
    """Credit raw_steps / 1000 FIT through a steps activity."""
    activity = ActivityGenerator(build_catalog()).build_activity(
        MetricDefinition("steps", "steps", 1000), raw_steps
    )
    await ledger.apply_sync_result(session, user_id, [activity])


class TestGetWallet:

    @pytest.mark.asyncio
    async def test_fresh_wallet(self, async_session, ledger):
        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.get("/api/wallet/u1")

        assert resp.status_code == 200
        data = resp.json()
        assert data["balance"] == 3
        assert data["staked_amount"] == 0
        assert data["today"] == {"date": TEST_DATE.isoformat(), "fitcoin_earned": 0, "activities": []}
        assert len(data["last_7_days"]) == 7
        assert data["last_7_days"][-1]["date"] == TEST_DATE.isoformat()
        assert data["daily_cap"] == 50
        assert data["daily_cap_reached"] is False

    @pytest.mark.asyncio
    async def test_shows_today_activities(self, async_session, ledger):
        await _fund(async_session, ledger, "u1", 4200)

        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            data = (await client.get("/api/wallet/u1")).json()

        assert data["today"]["activities"] == [
            {"title": "Steps", "fitcoin": 4.2, "metric": "4,200 steps", "icon": "Footprints"}
        ]
        assert data["balance"] == pytest.approx(7.2)


class TestRedeem:

    @pytest.mark.asyncio
    async def test_redeem_cost(self, async_session, ledger):
        await _fund(async_session, ledger, "u1", 7000)

        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/redeem", json={"cost": 5})

        assert resp.status_code == 200
        assert resp.json()["balance"] == pytest.approx(5)

    @pytest.mark.asyncio
    async def test_redeem_reward_by_id(self, async_session, ledger):
        await _fund(async_session, ledger, "u1", 7000)

        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/redeem", json={"reward_id": "m4"})
            too_expensive = await client.post("/api/wallet/u1/redeem", json={"reward_id": "m8"})

        assert resp.status_code == 200
        assert resp.json()["balance"] == pytest.approx(5)
        assert too_expensive.status_code == 400

    @pytest.mark.asyncio
    async def test_redeem_insufficient_funds(self, async_session, ledger):
        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/redeem", json={"cost": 5})
            wallet = (await client.get("/api/wallet/u1")).json()

        assert resp.status_code == 400
        assert wallet["balance"] == 3

    @pytest.mark.asyncio
    async def test_unknown_reward(self, async_session, ledger):
        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/redeem", json={"reward_id": "m99"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"cost": 5, "reward_id": "m4"}, {"cost": -2}])
    async def test_invalid_body(self, async_session, ledger, body):
        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/redeem", json=body)
        assert resp.status_code == 422


class TestStake:

    @pytest.mark.asyncio
    async def test_stake_more_than_balance(self, async_session, ledger):
        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/stake", json={"amount": 10})
            wallet = (await client.get("/api/wallet/u1")).json()

        assert resp.status_code == 400
        assert wallet["balance"] == 3
        assert wallet["staked_amount"] == 0

    @pytest.mark.asyncio
    async def test_stake_below_minimum(self, async_session, ledger):
        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/stake", json={"amount": 2})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_stake_moves_funds(self, async_session, ledger):
        await _fund(async_session, ledger, "u1", 9000)

        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.post("/api/wallet/u1/stake", json={"amount": 10})

        assert resp.status_code == 200
        data = resp.json()
        assert data["balance"] == pytest.approx(2)
        assert data["staked_amount"] == pytest.approx(10)


class TestSavings:

    @pytest.mark.asyncio
    async def test_bronze_tier_for_small_stake(self, async_session, ledger):
        await _fund(async_session, ledger, "u1", 8000)
        await ledger.stake(async_session, "u1", 10)

        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            data = (await client.get("/api/wallet/u1/savings")).json()

        assert data["current_tier"]["name"] == "Bronze"
        assert data["next_tier"]["name"] == "Silver"
        assert data["projected_annual_yield"] == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_savings_does_not_open_a_wallet(self, async_session, ledger):
        app = _make_test_app(async_session, ledger)
        async with _client(app) as client:
            resp = await client.get("/api/wallet/ghost/savings")

        assert resp.status_code == 404
        assert await ledger.snapshot(async_session, "ghost") is None
