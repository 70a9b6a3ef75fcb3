"""SQLAlchemy models for the referral ledger."""

from .balance import Balance  # noqa: F401
from .purchase import Purchase, PurchaseStatus  # noqa: F401
from .referral_reward import ReferralReward  # noqa: F401
from .user import User  # noqa: F401
