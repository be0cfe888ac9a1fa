from typing import Optional

from pydantic import BaseModel, field_validator


class TagCreate(BaseModel):
    name: str
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Tag name is required")
        return v.strip()


class TagResponse(BaseModel):
    id: int
    name: str
    color: str

    class Config:
        from_attributes = True
