"""Seed a demo referrer chain (1 <- 2 <- 3) into the API database."""

from __future__ import annotations

import asyncio
from typing import TypedDict

from sqlalchemy.ext.asyncio import AsyncSession

from referral_api.db.session import create_engine, create_session_factory, init_models
from referral_api.models.user import User


class SeedUser(TypedDict):
    id: int
    referrer_id: int | None
    is_active: bool


# Ordered so every referrer exists before the users it referred.
DEV_CHAIN: list[SeedUser] = [
    {"id": 1, "referrer_id": None, "is_active": True},
    {"id": 2, "referrer_id": 1, "is_active": True},
    {"id": 3, "referrer_id": 2, "is_active": True},
]


async def seed_chain(session: AsyncSession) -> None:
    for user in DEV_CHAIN:
        record = await session.get(User, user["id"])
        if record:
            record.is_active = user["is_active"]
            if record.referrer_id is None:
                record.referrer_id = user["referrer_id"]
        else:
            session.add(User(id=user["id"], referrer_id=user["referrer_id"], is_active=user["is_active"]))
        await session.flush()
    await session.commit()


async def main() -> None:
    engine = create_engine()
    session_factory = create_session_factory(engine)

    try:
        await init_models(engine)
        async with session_factory() as session:
            await seed_chain(session)
        print("Demo referral chain 1 <- 2 <- 3 ready")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
