from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Sequence

from referral_api.core.settings import Settings
from referral_api.services.rewards.chain import ChainLink
from referral_api.services.rewards.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RewardRates:
    """Fraction of the purchase amount paid at each referral level."""

    level1_rate: Fraction
    level2_rate: Fraction

    @classmethod
    def from_values(cls, level1_rate: Decimal | str | int, level2_rate: Decimal | str | int) -> "RewardRates":
        try:
            level1 = Fraction(Decimal(str(level1_rate)))
            level2 = Fraction(Decimal(str(level2_rate)))
        except (InvalidOperation, OverflowError, ValueError) as exc:
            raise ConfigurationError(f"Reward rates must be decimal fractions: {exc}") from exc

        if not 0 <= level2 < level1 <= 1:
            raise ConfigurationError(
                "Reward rates must satisfy 0 <= level2_rate < level1_rate <= 1 "
                f"(got level1_rate={level1_rate}, level2_rate={level2_rate})"
            )
        return cls(level1_rate=level1, level2_rate=level2)

    @classmethod
    def from_settings(cls, config: Settings) -> "RewardRates":
        return cls.from_values(config.level1_rate, config.level2_rate)

    def for_level(self, level: int) -> Fraction:
        if level == 1:
            return self.level1_rate
        if level == 2:
            return self.level2_rate
        raise ValueError(f"Unsupported referral level: {level}")


@dataclass(frozen=True, slots=True)
class RewardAllocation:
    beneficiary_id: int
    level: int
    amount: int


def reward_amount(amount: int, rate: Fraction) -> int:
    """Truncate ``amount * rate`` to whole minor units."""

    if amount < 0:
        raise ValueError("Purchase amount must be non-negative")
    return amount * rate.numerator // rate.denominator


def calculate_rewards(amount: int, chain: Sequence[ChainLink], rates: RewardRates) -> list[RewardAllocation]:
    return [
        RewardAllocation(
            beneficiary_id=link.beneficiary_id,
            level=link.level,
            amount=reward_amount(amount, rates.for_level(link.level)),
        )
        for link in chain
    ]


__all__ = ["RewardAllocation", "RewardRates", "calculate_rewards", "reward_amount"]
