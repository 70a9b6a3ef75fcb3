from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_api.models.user import User
from referral_api.services.rewards.errors import FatalError, NotFoundError

MAX_REFERRAL_DEPTH = 2


@dataclass(frozen=True, slots=True)
class ChainLink:
    """An eligible ancestor of the purchaser and its distance from them."""

    beneficiary_id: int
    level: int


class ReferralChainResolver:
    """Walks the referrer links above a purchaser, keeping active ancestors."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def resolve(self, purchaser_id: int) -> list[ChainLink]:
        purchaser = await self._fetch(purchaser_id)
        if purchaser is None:
            raise NotFoundError(f"Purchaser {purchaser_id} not found")

        chain: list[ChainLink] = []
        visited = {purchaser.id}
        current = purchaser
        # Inactive ancestors are skipped, not pruned: the walk continues past them.
        for level in range(1, MAX_REFERRAL_DEPTH + 1):
            if current.referrer_id is None:
                break
            if current.referrer_id in visited:
                raise FatalError(f"Referrer chain of user {purchaser_id} loops back on user {current.referrer_id}")

            ancestor = await self._fetch(current.referrer_id)
            if ancestor is None:
                raise FatalError(f"User {current.id} references missing referrer {current.referrer_id}")
            visited.add(ancestor.id)

            if ancestor.is_active:
                chain.append(ChainLink(beneficiary_id=ancestor.id, level=level))
            else:
                logger.debug(
                    "Skipping inactive referrer",
                    purchaser_id=purchaser_id,
                    referrer_id=ancestor.id,
                    level=level,
                )
            current = ancestor

        return chain

    async def _fetch(self, user_id: int):
        stmt = select(User.id, User.referrer_id, User.is_active).where(User.id == user_id)
        result = await self._session.execute(stmt)
        return result.one_or_none()


__all__ = ["ChainLink", "MAX_REFERRAL_DEPTH", "ReferralChainResolver"]
