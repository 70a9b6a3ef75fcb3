from uuid import uuid4

import pytest
from sqlalchemy import delete

from referral_api.models.purchase import PurchaseStatus
from referral_api.models.user import User
from referral_api.services.ledger import DuplicatePurchaseError, LedgerService, UnknownUserError


@pytest.mark.asyncio
async def test_reused_purchase_id_is_a_duplicate(session_factory, seed_users) -> None:
    await seed_users((1, None, True))
    purchase_id = uuid4()

    async with session_factory() as session:
        await LedgerService(session).create_purchase(
            user_id=1, amount=100, status=PurchaseStatus.CAPTURED, purchase_id=purchase_id
        )

    async with session_factory() as session:
        with pytest.raises(DuplicatePurchaseError):
            await LedgerService(session).create_purchase(
                user_id=1, amount=100, status=PurchaseStatus.CAPTURED, purchase_id=purchase_id
            )


@pytest.mark.asyncio
async def test_user_removed_before_commit_is_not_a_duplicate(session_factory, seed_users) -> None:
    await seed_users((7, None, True))

    async with session_factory() as session:
        # Keep user 7 in the identity map so the existence check passes without a query.
        await session.get(User, 7)
        await session.commit()

        async with session_factory() as other:
            await other.execute(delete(User).where(User.id == 7))
            await other.commit()

        with pytest.raises(UnknownUserError):
            await LedgerService(session).create_purchase(user_id=7, amount=100, status=PurchaseStatus.CAPTURED)


@pytest.mark.asyncio
async def test_missing_balance_reads_as_zero(session_factory) -> None:
    async with session_factory() as session:
        assert await LedgerService(session).get_balance(42) == 0
