"""Referral reward rows; one per (purchase, beneficiary, level)."""

from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    SmallInteger,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID

from referral_api.db.base import Base
from referral_api.models.user import IdentifierType

REWARD_ANCHOR_CONSTRAINT = "uq_referral_rewards_purchase_beneficiary_level"


class ReferralReward(Base):
    """Credit granted to an ancestor referrer for a captured purchase."""

    __tablename__ = "referral_rewards"
    __table_args__ = (
        UniqueConstraint("purchase_id", "beneficiary_user_id", "level", name=REWARD_ANCHOR_CONSTRAINT),
        CheckConstraint("level IN (1, 2)", name="ck_referral_rewards_level"),
        CheckConstraint("amount >= 0", name="ck_referral_rewards_amount_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    purchase_id = Column(UUID(as_uuid=True), ForeignKey("purchases.id"), nullable=False)
    purchaser_user_id = Column(IdentifierType, ForeignKey("users.id"), nullable=False)
    beneficiary_user_id = Column(IdentifierType, ForeignKey("users.id"), nullable=False, index=True)
    level = Column(SmallInteger, nullable=False)
    amount = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
