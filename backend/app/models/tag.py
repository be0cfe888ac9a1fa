from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint

from app.core.database import Base

DEFAULT_TAG_COLOR = "#3498db"


class Tag(Base):
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_tags_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    color = Column(String(20), default=DEFAULT_TAG_COLOR)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
