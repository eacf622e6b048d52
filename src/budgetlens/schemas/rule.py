"""Pydantic schemas for categorization rules."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

RuleField = Literal["description", "type"]


class RuleCreate(BaseModel):
    """Explicit, user-authored rule."""

    category_id: str = Field(description="Target category identifier")
    pattern: str = Field(description="Regular expression, matched case-insensitively")
    field: RuleField = Field("description", description="Transaction attribute to test")
    priority: int = Field(100, description="Higher priority rules are evaluated first")
    is_active: bool = True

    @field_validator("pattern", "category_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()


class RuleUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    category_id: str | None = None
    pattern: str | None = None
    field: RuleField | None = None
    priority: int | None = None
    is_active: bool | None = None

    @field_validator("pattern", "category_id")
    @classmethod
    def not_blank_when_set(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()


class RuleRead(BaseModel):
    """Rule as stored."""

    id: UUID
    category_id: str
    pattern: str
    field: RuleField
    priority: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
