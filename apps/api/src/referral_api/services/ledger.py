"""Purchase intake and balance lookups backing the HTTP surface."""

from __future__ import annotations

from uuid import UUID, uuid4

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_api.models.balance import Balance
from referral_api.models.purchase import Purchase, PurchaseStatus
from referral_api.models.user import User


class LedgerError(RuntimeError):
    """Base exception for ledger intake failures."""


class UnknownUserError(LedgerError):
    """Raised when a purchase references a user that does not exist."""


class DuplicatePurchaseError(LedgerError):
    """Raised when a purchase identifier is already taken."""


class LedgerService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_purchase(
        self,
        *,
        user_id: int,
        amount: int,
        status: PurchaseStatus,
        purchase_id: UUID | None = None,
    ) -> Purchase:
        if amount < 0:
            raise ValueError("amount must be >= 0")

        if await self._session.get(User, user_id) is None:
            raise UnknownUserError(f"User {user_id} not found")

        purchase = Purchase(id=purchase_id or uuid4(), user_id=user_id, amount=amount, status=status.value)
        self._session.add(purchase)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            if await self._exists(Purchase.id, purchase.id):
                raise DuplicatePurchaseError(f"Purchase {purchase.id} already exists") from exc
            if not await self._exists(User.id, user_id):
                raise UnknownUserError(f"User {user_id} not found") from exc
            raise

        logger.info(
            "Recorded purchase",
            purchase_id=str(purchase.id),
            user_id=user_id,
            amount=amount,
            status=status.value,
        )
        return purchase

    async def _exists(self, column, value) -> bool:  # noqa: ANN001
        result = await self._session.execute(select(column).where(column == value))
        return result.first() is not None

    async def get_balance(self, user_id: int) -> int:
        stmt = select(Balance.balance).where(Balance.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() or 0


__all__ = ["DuplicatePurchaseError", "LedgerError", "LedgerService", "UnknownUserError"]
