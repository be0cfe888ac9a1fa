from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class WatchlistCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Watchlist name is required")
        return v.strip()


class WatchlistItemCreate(BaseModel):
    symbol: str
    notes: str = ""

    @field_validator("symbol")
    @classmethod
    def symbol_upper(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Symbol is required")
        return v.strip().upper()


class WatchlistItemResponse(BaseModel):
    id: int
    symbol: str
    notes: str = ""
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WatchlistResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    items: list[WatchlistItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
