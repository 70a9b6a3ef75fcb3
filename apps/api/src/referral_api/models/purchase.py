from enum import Enum
from uuid import uuid4

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID

from referral_api.db.base import Base
from referral_api.models.user import IdentifierType


class PurchaseStatus(str, Enum):
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    VOIDED = "voided"


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_purchases_amount_non_negative"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(IdentifierType, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    status = Column(String(length=16), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
