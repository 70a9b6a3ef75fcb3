"""Exactly-once persistence of referral rewards and the balance credits they carry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_api.models.balance import Balance
from referral_api.models.referral_reward import ReferralReward
from referral_api.services.rewards.calculator import RewardAllocation

# Dialects offering INSERT ... ON CONFLICT; others fall back to savepoint-guarded inserts.
_CONFLICT_AWARE_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_REWARD_ANCHOR = ("purchase_id", "beneficiary_user_id", "level")


@dataclass(slots=True)
class CommitOutcome:
    """Allocations newly applied by a commit and those already on the ledger."""

    applied: list[RewardAllocation] = field(default_factory=list)
    skipped: list[RewardAllocation] = field(default_factory=list)

    @property
    def rewards_created(self) -> int:
        return len(self.applied)

    @property
    def amount_credited(self) -> int:
        return sum(allocation.amount for allocation in self.applied)


class RewardCommitter:
    """Writes reward rows and balance deltas inside the caller's transaction.

    A reward row is inserted at most once per (purchase, beneficiary, level); the
    unique constraint on those columns is the only duplicate guard. When the row
    already exists, whether from an earlier call or a concurrent one, the
    allocation is skipped and the beneficiary's balance is left untouched.

    The commit itself is owned by the caller so rewards and balances land in a
    single transaction.
    """

    def __init__(self, session: AsyncSession, *, native_upsert: bool | None = None) -> None:
        self._session = session
        dialect = session.get_bind().dialect.name
        insert_factory = _CONFLICT_AWARE_INSERTS.get(dialect)
        if native_upsert is False:
            insert_factory = None
        elif native_upsert and insert_factory is None:
            raise ValueError(f"Dialect {dialect} does not support INSERT ... ON CONFLICT")
        self._insert = insert_factory

    async def commit(
        self,
        *,
        purchase_id: UUID,
        purchaser_id: int,
        allocations: Sequence[RewardAllocation],
    ) -> CommitOutcome:
        outcome = CommitOutcome()
        for allocation in allocations:
            if await self._record_reward(purchase_id, purchaser_id, allocation):
                await self._credit_balance(allocation.beneficiary_id, allocation.amount)
                outcome.applied.append(allocation)
                logger.info(
                    "Applied referral reward",
                    purchase_id=str(purchase_id),
                    beneficiary_id=allocation.beneficiary_id,
                    level=allocation.level,
                    amount=allocation.amount,
                )
            else:
                outcome.skipped.append(allocation)
                logger.info(
                    "Referral reward already recorded",
                    purchase_id=str(purchase_id),
                    beneficiary_id=allocation.beneficiary_id,
                    level=allocation.level,
                )
        return outcome

    async def _record_reward(self, purchase_id: UUID, purchaser_id: int, allocation: RewardAllocation) -> bool:
        values = {
            "purchase_id": purchase_id,
            "purchaser_user_id": purchaser_id,
            "beneficiary_user_id": allocation.beneficiary_id,
            "level": allocation.level,
            "amount": allocation.amount,
        }
        if self._insert is not None:
            stmt = self._insert(ReferralReward).values(**values).on_conflict_do_nothing(index_elements=list(_REWARD_ANCHOR))
            result = await self._session.execute(stmt)
            return result.rowcount == 1

        try:
            async with self._session.begin_nested():
                self._session.add(ReferralReward(**values))
        except IntegrityError:
            # Only the anchor collision means "already applied"; anything else is real.
            if await self._reward_exists(purchase_id, allocation):
                return False
            raise
        return True

    async def _reward_exists(self, purchase_id: UUID, allocation: RewardAllocation) -> bool:
        stmt = select(ReferralReward.id).where(
            ReferralReward.purchase_id == purchase_id,
            ReferralReward.beneficiary_user_id == allocation.beneficiary_id,
            ReferralReward.level == allocation.level,
        )
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def _credit_balance(self, user_id: int, amount: int) -> None:
        if self._insert is not None:
            stmt = self._insert(Balance).values(user_id=user_id, balance=amount)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Balance.user_id],
                set_={"balance": Balance.balance + stmt.excluded.balance, "updated_at": func.now()},
            )
            await self._session.execute(stmt)
            return

        if await self._increment_balance(user_id, amount):
            return
        try:
            async with self._session.begin_nested():
                self._session.add(Balance(user_id=user_id, balance=amount))
        except IntegrityError:
            # Another transaction created the row first.
            if not await self._increment_balance(user_id, amount):
                raise

    async def _increment_balance(self, user_id: int, amount: int) -> bool:
        stmt = (
            update(Balance)
            .where(Balance.user_id == user_id)
            .values(balance=Balance.balance + amount, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1


__all__ = ["CommitOutcome", "RewardCommitter"]
