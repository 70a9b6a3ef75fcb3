"""Observability endpoints for reward processing."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from referral_api.api.dependencies.security import require_observability_api_key
from referral_api.observability.rewards import get_reward_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get(
    "/rewards",
    dependencies=[Depends(require_observability_api_key)],
    summary="Reward processing snapshot",
)
async def get_reward_processing_snapshot() -> dict[str, object]:
    return get_reward_store().snapshot().as_dict()
