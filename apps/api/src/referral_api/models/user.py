from sqlalchemy import BigInteger, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, func, true

from referral_api.db.base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
IdentifierType = BigInteger().with_variant(Integer(), "sqlite")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("referrer_id IS NULL OR referrer_id <> id", name="ck_users_no_self_referral"),
    )

    id = Column(IdentifierType, primary_key=True, autoincrement=True)
    referrer_id = Column(IdentifierType, ForeignKey("users.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
