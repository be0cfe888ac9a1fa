from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Float, Index, text
from sqlalchemy.orm import relationship

from app.core.database import Base

DEFAULT_ACCOUNT_COLOR = "#7C3AED"


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        # At most one default account per user
        Index(
            "uq_accounts_user_default",
            "user_id",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    broker = Column(String(50), default="")
    account_type = Column(String(30), default="")     # cash, margin, prop, demo ...
    currency = Column(String(10), default="USD")
    color = Column(String(20), default=DEFAULT_ACCOUNT_COLOR)
    is_default = Column(Boolean, default=False, nullable=False)
    initial_balance = Column(Float, default=0.0)
    current_balance = Column(Float, default=0.0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="accounts")
    trades = relationship("Trade", back_populates="account")
