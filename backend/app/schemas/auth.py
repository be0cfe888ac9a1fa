from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

MIN_PASSWORD_LENGTH = 6


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_normalized(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if "@" not in v:
            raise ValueError("A valid email is required")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class AccountBrief(BaseModel):
    id: int
    name: str
    color: str = ""
    is_default: bool = False

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: Optional[datetime] = None
    accounts: list[AccountBrief] = []

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: str


class AuthResponse(Token):
    user: UserResponse


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class VerifyResponse(BaseModel):
    is_authenticated: bool
    user: Optional[UserResponse] = None
