from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Table, Text
from sqlalchemy.orm import relationship

from app.core.database import Base

journal_entry_trades = Table(
    "journal_entry_trades",
    Base.metadata,
    Column("journal_entry_id", Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), primary_key=True),
    Column("trade_id", Integer, ForeignKey("trades.id", ondelete="CASCADE"), primary_key=True),
)


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(DateTime, nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, default="")
    market_conditions = Column(Text, default="")
    sentiment = Column(String(10), nullable=True)   # bullish, bearish, neutral
    lessons = Column(Text, default="")
    tags = Column(JSON, default=list)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    related_trades = relationship(
        "Trade", secondary=journal_entry_trades, order_by="Trade.entry_date", back_populates="journal_entries",
    )
