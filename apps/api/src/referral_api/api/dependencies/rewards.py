"""Dependencies wiring the reward processor into request handlers."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from referral_api.db.session import get_session_factory
from referral_api.services.rewards import ReferralRewardProcessor


def get_reward_processor(
    request: Request,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ReferralRewardProcessor:
    """Build a processor bound to the request's session factory and the app's validated rates."""

    return ReferralRewardProcessor(session_factory, rates=request.app.state.reward_rates)
