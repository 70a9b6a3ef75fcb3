from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class RewardProcessingSnapshot:
    outcomes: Dict[str, int]
    failures: Dict[str, int]
    rewards_created: int
    amount_credited: int

    def as_dict(self) -> Dict[str, object]:
        return {
            "outcomes": dict(self.outcomes),
            "failures": dict(self.failures),
            "rewardsCreated": self.rewards_created,
            "amountCredited": self.amount_credited,
        }


class RewardObservabilityStore:
    """Counts reward processing outcomes for dashboards and alerting."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._outcomes: Dict[str, int] = defaultdict(int)
        self._failures: Dict[str, int] = defaultdict(int)
        self._rewards_created = 0
        self._amount_credited = 0

    def record_result(self, outcome: str, rewards_created: int, amount_credited: int) -> None:
        with self._lock:
            self._outcomes[outcome] += 1
            self._rewards_created += rewards_created
            self._amount_credited += amount_credited

    def record_failure(self, kind: str) -> None:
        with self._lock:
            self._failures[kind] += 1

    def snapshot(self) -> RewardProcessingSnapshot:
        with self._lock:
            return RewardProcessingSnapshot(
                outcomes=dict(self._outcomes),
                failures=dict(self._failures),
                rewards_created=self._rewards_created,
                amount_credited=self._amount_credited,
            )

    def reset(self) -> None:
        with self._lock:
            self._outcomes.clear()
            self._failures.clear()
            self._rewards_created = 0
            self._amount_credited = 0


_STORE = RewardObservabilityStore()


def get_reward_store() -> RewardObservabilityStore:
    return _STORE


__all__ = ["get_reward_store", "RewardObservabilityStore", "RewardProcessingSnapshot"]
