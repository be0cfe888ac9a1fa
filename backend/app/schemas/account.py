from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class AccountCreate(BaseModel):
    name: str
    broker: str = ""
    account_type: str = ""
    currency: str = "USD"
    color: Optional[str] = None
    initial_balance: float = 0.0
    current_balance: Optional[float] = None   # defaults to initial_balance
    is_default: bool = False

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Account name is required")
        return v.strip()


class AccountUpdate(BaseModel):
    name: Optional[str] = None
    broker: Optional[str] = None
    account_type: Optional[str] = None
    currency: Optional[str] = None
    color: Optional[str] = None
    initial_balance: Optional[float] = None
    current_balance: Optional[float] = None
    is_default: Optional[bool] = None


class AccountResponse(BaseModel):
    id: int
    name: str
    broker: str = ""
    account_type: str = ""
    currency: str = "USD"
    color: str = ""
    is_default: bool = False
    initial_balance: float = 0.0
    current_balance: float = 0.0
    trade_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
