from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from referral_api.api.dependencies.rewards import get_reward_processor
from referral_api.core.settings import settings
from referral_api.services.rewards import FatalError, StoreError


class _FailingProcessor:
    def __init__(self, error: Exception) -> None:
        self._error = error

    async def process_purchase(self, purchase_id):  # noqa: ANN001
        raise self._error


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_purchase_intake_and_reward_processing(app_with_db, seed_users) -> None:
    app, _ = app_with_db
    await seed_users((1, None, True), (2, 1, True), (3, 2, True))

    async with _client(app) as client:
        created = await client.post(
            "/api/v1/purchases",
            json={"userId": 3, "amount": 10_000, "status": "captured"},
        )
        assert created.status_code == 201
        purchase_id = created.json()["id"]

        processed = await client.post(f"/api/v1/purchases/{purchase_id}/process")
        replayed = await client.post(f"/api/v1/purchases/{purchase_id}/process")
        level1 = await client.get("/api/v1/balances/2")
        level2 = await client.get("/api/v1/balances/1")

    assert processed.status_code == 200
    assert processed.json() == {
        "purchaseId": purchase_id,
        "outcome": "committed",
        "rewardsCreated": 2,
        "amountCredited": 1_500,
    }
    assert replayed.status_code == 200
    assert replayed.json()["outcome"] == "noop"
    assert replayed.json()["rewardsCreated"] == 0
    assert level1.json() == {"userId": 2, "balance": 1_000}
    assert level2.json() == {"userId": 1, "balance": 500}


@pytest.mark.asyncio
async def test_balance_defaults_to_zero(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        response = await client.get("/api/v1/balances/42")

    assert response.status_code == 200
    assert response.json() == {"userId": 42, "balance": 0}


@pytest.mark.asyncio
async def test_authorized_purchase_is_not_rewarded(app_with_db, seed_users) -> None:
    app, _ = app_with_db
    await seed_users((1, None, True), (2, 1, True))

    async with _client(app) as client:
        created = await client.post(
            "/api/v1/purchases",
            json={"userId": 2, "amount": 500, "status": "authorized"},
        )
        processed = await client.post(f"/api/v1/purchases/{created.json()['id']}/process")
        balance = await client.get("/api/v1/balances/1")

    assert processed.json()["outcome"] == "ineligible"
    assert balance.json()["balance"] == 0


@pytest.mark.asyncio
async def test_negative_amount_is_rejected(app_with_db, seed_users) -> None:
    app, _ = app_with_db
    await seed_users((1, None, True))

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/purchases",
            json={"userId": 1, "amount": -5, "status": "captured"},
        )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_status_is_rejected(app_with_db, seed_users) -> None:
    app, _ = app_with_db
    await seed_users((1, None, True))

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/purchases",
            json={"userId": 1, "amount": 5, "status": "settled"},
        )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_purchase_for_unknown_user_is_rejected(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/purchases",
            json={"userId": 99, "amount": 5, "status": "captured"},
        )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_duplicate_purchase_id_conflicts(app_with_db, seed_users) -> None:
    app, _ = app_with_db
    await seed_users((1, None, True))
    payload = {"id": str(uuid4()), "userId": 1, "amount": 5, "status": "captured"}

    async with _client(app) as client:
        first = await client.post("/api/v1/purchases", json=payload)
        second = await client.post("/api/v1/purchases", json=payload)

    assert first.status_code == 201
    assert first.json()["id"] == payload["id"]
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_processing_unknown_purchase_returns_404(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        response = await client.post(f"/api/v1/purchases/{uuid4()}/process")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_store_failure_returns_retryable_503(app_with_db) -> None:
    app, _ = app_with_db
    app.dependency_overrides[get_reward_processor] = lambda: _FailingProcessor(StoreError("database is locked"))

    async with _client(app) as client:
        response = await client.post(f"/api/v1/purchases/{uuid4()}/process")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == str(settings.store_retry_after_seconds)


@pytest.mark.asyncio
async def test_fatal_failure_returns_500(app_with_db) -> None:
    app, _ = app_with_db
    app.dependency_overrides[get_reward_processor] = lambda: _FailingProcessor(FatalError("referral loop"))

    async with _client(app) as client:
        response = await client.post(f"/api/v1/purchases/{uuid4()}/process")

    assert response.status_code == 500
    assert response.json() == {"detail": "reward processing failed"}
