from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, JSON, Text
from sqlalchemy.orm import relationship

from app.core.database import Base


class Trade(Base):
    __tablename__ = "trades"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    symbol = Column(String(30), nullable=False, index=True)
    direction = Column(String(10), nullable=False)  # LONG or SHORT
    quantity = Column(Float, nullable=False)
    entry_price = Column(Float, nullable=False)
    entry_date = Column(DateTime, nullable=False, index=True)
    exit_price = Column(Float)
    exit_date = Column(DateTime)                    # set <=> closed
    fees = Column(Float, default=0.0, nullable=False)
    pnl = Column(Float)                             # null while open
    strategy = Column(String(100), default="")
    notes = Column(Text, default="")
    tags = Column(JSON, default=list)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    account = relationship("Account", back_populates="trades")
    journal_entries = relationship("JournalEntry", secondary="journal_entry_trades", back_populates="related_trades")

    @property
    def is_closed(self) -> bool:
        return self.exit_date is not None
