"""API endpoints for purchase intake and referral reward processing."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_api.api.dependencies.rewards import get_reward_processor
from referral_api.core.settings import settings
from referral_api.db.session import get_session
from referral_api.models.purchase import PurchaseStatus
from referral_api.services.ledger import DuplicatePurchaseError, LedgerService, UnknownUserError
from referral_api.services.rewards import (
    FatalError,
    NotFoundError,
    ReferralRewardProcessor,
    StoreError,
)


router = APIRouter(prefix="/purchases", tags=["Purchases"])


class CreatePurchaseRequest(BaseModel):
    userId: int
    amount: int
    status: PurchaseStatus
    id: UUID | None = Field(default=None, description="Client-supplied purchase identifier")


class CreatePurchaseResponse(BaseModel):
    id: UUID


class ProcessPurchaseResponse(BaseModel):
    purchaseId: UUID
    outcome: str
    rewardsCreated: int
    amountCredited: int


@router.post(
    "",
    response_model=CreatePurchaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a purchase",
)
async def create_purchase(
    payload: CreatePurchaseRequest,
    db: AsyncSession = Depends(get_session),
) -> CreatePurchaseResponse:
    if payload.amount < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="amount must be >= 0")

    try:
        purchase = await LedgerService(db).create_purchase(
            user_id=payload.userId,
            amount=payload.amount,
            status=payload.status,
            purchase_id=payload.id,
        )
    except UnknownUserError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DuplicatePurchaseError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="purchase already exists") from exc
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="ledger store unavailable") from exc

    return CreatePurchaseResponse(id=purchase.id)


@router.post(
    "/{purchase_id}/process",
    response_model=ProcessPurchaseResponse,
    summary="Distribute referral rewards for a purchase",
)
async def process_purchase(
    purchase_id: UUID,
    processor: ReferralRewardProcessor = Depends(get_reward_processor),
) -> ProcessPurchaseResponse:
    try:
        result = await processor.process_purchase(purchase_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
            headers={"Retry-After": str(settings.store_retry_after_seconds)},
        ) from exc
    except FatalError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="reward processing failed",
        ) from exc

    return ProcessPurchaseResponse(
        purchaseId=result.purchase_id,
        outcome=result.outcome.value,
        rewardsCreated=result.rewards_created,
        amountCredited=result.amount_credited,
    )
