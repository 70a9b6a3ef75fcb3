from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from referral_api.db.session import get_session
from referral_api.services.ledger import LedgerService

router = APIRouter(prefix="/balances", tags=["Balances"])


class BalanceResponse(BaseModel):
    userId: int
    balance: int


@router.get("/{user_id}", response_model=BalanceResponse, summary="Accumulated referral credit for a user")
async def get_balance(user_id: int, db: AsyncSession = Depends(get_session)) -> BalanceResponse:
    balance = await LedgerService(db).get_balance(user_id)
    return BalanceResponse(userId=user_id, balance=balance)
