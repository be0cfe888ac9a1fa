from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

Sentiment = Literal["bullish", "bearish", "neutral"]


class JournalEntryCreate(BaseModel):
    date: datetime
    title: str
    content: str = ""
    market_conditions: str = ""
    sentiment: Optional[Sentiment] = None
    lessons: str = ""
    tags: list[str] = []
    related_trade_ids: list[int] = []

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()


class JournalEntryUpdate(BaseModel):
    date: Optional[datetime] = None
    title: Optional[str] = None
    content: Optional[str] = None
    market_conditions: Optional[str] = None
    sentiment: Optional[Sentiment] = None
    lessons: Optional[str] = None
    tags: Optional[list[str]] = None
    related_trade_ids: Optional[list[int]] = None


class JournalEntryResponse(BaseModel):
    id: int
    date: datetime
    title: str
    content: str = ""
    market_conditions: str = ""
    sentiment: Optional[str] = None
    lessons: str = ""
    tags: list[str] = []
    related_trade_ids: list[int] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
