from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.services.importer.columns import to_naive_utc


def _direction(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if v not in ("LONG", "SHORT"):
        raise ValueError("Direction must be either LONG or SHORT")
    return v


def _symbol(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("Symbol is required")
    return v.strip()


class TradeCreate(BaseModel):
    account_id: int
    symbol: str
    direction: str
    quantity: float = Field(gt=0)
    entry_price: float = Field(gt=0)
    entry_date: datetime
    exit_price: Optional[float] = Field(default=None, gt=0)
    exit_date: Optional[datetime] = None
    fees: float = Field(default=0.0, ge=0)
    strategy: str = ""
    notes: str = ""
    tags: list[str] = []

    @field_validator("direction")
    @classmethod
    def direction_upper(cls, v):
        return _direction(v)

    @field_validator("symbol")
    @classmethod
    def symbol_not_empty(cls, v):
        return _symbol(v)

    @field_validator("entry_date", "exit_date")
    @classmethod
    def dates_utc(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def exit_needs_price(self):
        if self.exit_date is not None and self.exit_price is None:
            raise ValueError("Exit price is required when an exit date is given")
        return self


class TradeUpdate(BaseModel):
    """Partial update; only the fields sent are changed.

    Sending ``exit_date: null`` re-opens a closed trade.
    """
    account_id: Optional[int] = None
    symbol: Optional[str] = None
    direction: Optional[str] = None
    quantity: Optional[float] = Field(default=None, gt=0)
    entry_price: Optional[float] = Field(default=None, gt=0)
    entry_date: Optional[datetime] = None
    exit_price: Optional[float] = Field(default=None, gt=0)
    exit_date: Optional[datetime] = None
    fees: Optional[float] = Field(default=None, ge=0)
    strategy: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[list[str]] = None

    @field_validator("direction")
    @classmethod
    def direction_upper(cls, v):
        return _direction(v)

    @field_validator("symbol")
    @classmethod
    def symbol_not_empty(cls, v):
        return _symbol(v)

    @field_validator("entry_date", "exit_date")
    @classmethod
    def dates_utc(cls, v):
        return to_naive_utc(v)


class TradeResponse(BaseModel):
    id: int
    account_id: int
    symbol: str
    direction: str
    quantity: float
    entry_price: float
    entry_date: datetime
    exit_price: Optional[float] = None
    exit_date: Optional[datetime] = None
    fees: float = 0.0
    pnl: Optional[float] = None
    strategy: str = ""
    notes: str = ""
    tags: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class TradeList(BaseModel):
    items: list[TradeResponse]
    pagination: Pagination


class ImportRowError(BaseModel):
    row: int
    message: str


class ImportResponse(BaseModel):
    inserted_count: int
    message: str
