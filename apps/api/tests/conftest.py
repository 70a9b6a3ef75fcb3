from __future__ import annotations

from typing import Awaitable, Callable
from uuid import UUID

import pytest
import pytest_asyncio

from referral_api.app import create_app
from referral_api.db.session import (
    create_engine,
    create_session_factory,
    get_session,
    get_session_factory,
    init_models,
)
from referral_api.models.purchase import Purchase
from referral_api.models.user import User
from referral_api.observability.rewards import get_reward_store

UserSpec = tuple[int, int | None, bool]


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    # File-backed so concurrent sessions get their own connections.
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False)
    await init_models(engine)

    factory = create_session_factory(engine)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def app_with_db(session_factory):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_reward_store():
    get_reward_store().reset()
    yield
    get_reward_store().reset()


@pytest.fixture
def seed_users(session_factory) -> Callable[..., Awaitable[None]]:
    """Insert users given as (id, referrer_id, is_active), referrers first."""

    async def _seed(*users: UserSpec) -> None:
        async with session_factory() as session:
            for user_id, referrer_id, is_active in users:
                session.add(User(id=user_id, referrer_id=referrer_id, is_active=is_active))
                await session.flush()
            await session.commit()

    return _seed


@pytest.fixture
def create_purchase(session_factory) -> Callable[..., Awaitable[UUID]]:
    async def _create(user_id: int, amount: int, status: str = "captured") -> UUID:
        async with session_factory() as session:
            purchase = Purchase(user_id=user_id, amount=amount, status=status)
            session.add(purchase)
            await session.commit()
            return purchase.id

    return _create
