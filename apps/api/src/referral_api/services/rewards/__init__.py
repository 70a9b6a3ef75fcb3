"""Referral reward processing exports."""

from .calculator import RewardAllocation, RewardRates, calculate_rewards, reward_amount  # noqa: F401
from .chain import ChainLink, ReferralChainResolver  # noqa: F401
from .committer import CommitOutcome, RewardCommitter  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    FatalError,
    NotFoundError,
    RewardProcessingError,
    StoreError,
    translate_store_error,
)
from .processor import (  # noqa: F401
    REWARD_ELIGIBLE_STATUSES,
    ProcessingOutcome,
    ProcessingResult,
    ReferralRewardProcessor,
)
