from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, func

from referral_api.db.base import Base
from referral_api.models.user import IdentifierType


class Balance(Base):
    """Accumulated referral credit for a user, in minor currency units."""

    __tablename__ = "balances"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_balances_non_negative"),)

    user_id = Column(IdentifierType, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    balance = Column(BigInteger, nullable=False, default=0, server_default="0")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
