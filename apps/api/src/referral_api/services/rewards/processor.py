"""Per-purchase orchestration of referral reward processing."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from referral_api.core.settings import settings
from referral_api.models.purchase import Purchase, PurchaseStatus
from referral_api.observability.rewards import RewardObservabilityStore, get_reward_store
from referral_api.services.rewards.calculator import RewardRates, calculate_rewards
from referral_api.services.rewards.chain import ReferralChainResolver
from referral_api.services.rewards.committer import RewardCommitter
from referral_api.services.rewards.errors import (
    FatalError,
    NotFoundError,
    translate_store_error,
)

REWARD_ELIGIBLE_STATUSES = frozenset({PurchaseStatus.CAPTURED.value})


class ProcessingOutcome(str, Enum):
    COMMITTED = "committed"
    NOOP = "noop"
    INELIGIBLE = "ineligible"


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    """What a single processing call changed on the ledger."""

    purchase_id: UUID
    outcome: ProcessingOutcome
    rewards_created: int = 0
    amount_credited: int = 0


class ReferralRewardProcessor:
    """Entry point that turns a persisted purchase into referral credits.

    Every call runs in its own session and transaction: the purchase is loaded,
    its status checked, the referrer chain resolved and priced, and the rewards
    committed. Re-running a call, or running several at once for the same
    purchase, converges on the same ledger state; only the call that actually
    inserted rewards reports them.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        rates: RewardRates | None = None,
        timeout_seconds: float | None = None,
        native_upsert: bool | None = None,
        observability: RewardObservabilityStore | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._rates = rates or RewardRates.from_settings(settings)
        self._timeout_seconds = settings.processing_timeout_seconds if timeout_seconds is None else timeout_seconds
        self._native_upsert = native_upsert
        self._observability = observability or get_reward_store()

    @property
    def rates(self) -> RewardRates:
        return self._rates

    async def process_purchase(self, purchase_id: UUID) -> ProcessingResult:
        try:
            result = await asyncio.wait_for(self._process(purchase_id), timeout=self._timeout_seconds)
        except NotFoundError:
            self._observability.record_failure("not_found")
            logger.warning("Purchase not found for reward processing", purchase_id=str(purchase_id))
            raise
        except FatalError:
            self._observability.record_failure("fatal_error")
            logger.exception("Reward processing failed permanently", purchase_id=str(purchase_id))
            raise
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            error = translate_store_error(exc)
            self._observability.record_failure("store_error" if error.retryable else "fatal_error")
            if error.retryable:
                logger.warning("Reward processing hit a transient store failure", purchase_id=str(purchase_id), error=str(error))
            else:
                logger.exception("Reward processing failed permanently", purchase_id=str(purchase_id))
            raise error from exc
        except Exception as exc:
            error = translate_store_error(exc)
            self._observability.record_failure("fatal_error")
            logger.exception("Reward processing failed permanently", purchase_id=str(purchase_id))
            raise error from exc

        self._observability.record_result(result.outcome.value, result.rewards_created, result.amount_credited)
        logger.info(
            "Processed purchase for referral rewards",
            purchase_id=str(purchase_id),
            outcome=result.outcome.value,
            rewards_created=result.rewards_created,
            amount_credited=result.amount_credited,
        )
        return result

    async def _process(self, purchase_id: UUID) -> ProcessingResult:
        async with self._session_factory() as session:
            async with session.begin():
                purchase = await self._load_purchase(session, purchase_id)
                if purchase is None:
                    raise NotFoundError(f"Purchase {purchase_id} not found")

                if purchase.status not in REWARD_ELIGIBLE_STATUSES:
                    logger.debug(
                        "Purchase not eligible for referral rewards",
                        purchase_id=str(purchase_id),
                        status=purchase.status,
                    )
                    return ProcessingResult(purchase_id=purchase_id, outcome=ProcessingOutcome.INELIGIBLE)

                chain = await ReferralChainResolver(session).resolve(purchase.user_id)
                allocations = calculate_rewards(purchase.amount, chain, self._rates)
                committer = RewardCommitter(session, native_upsert=self._native_upsert)
                outcome = await committer.commit(
                    purchase_id=purchase_id,
                    purchaser_id=purchase.user_id,
                    allocations=allocations,
                )

        return ProcessingResult(
            purchase_id=purchase_id,
            outcome=ProcessingOutcome.COMMITTED if outcome.applied else ProcessingOutcome.NOOP,
            rewards_created=outcome.rewards_created,
            amount_credited=outcome.amount_credited,
        )

    @staticmethod
    async def _load_purchase(session: AsyncSession, purchase_id: UUID):
        stmt = (
            select(Purchase.id, Purchase.user_id, Purchase.amount, Purchase.status)
            .where(Purchase.id == purchase_id)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.one_or_none()


__all__ = [
    "REWARD_ELIGIBLE_STATUSES",
    "ProcessingOutcome",
    "ProcessingResult",
    "ReferralRewardProcessor",
]
