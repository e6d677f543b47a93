from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from classboard.core.config import settings


class ClassBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    prodi: str = Field(default=settings.DEFAULT_PRODI, max_length=100)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        """Class names are stored upper-case."""
        return value.strip().upper()


class ClassCreate(ClassBase):
    member_limit: int = Field(
        default=settings.DEFAULT_MEMBER_LIMIT,
        ge=settings.MIN_MEMBER_LIMIT,
        le=settings.MAX_MEMBER_LIMIT,
    )


class ClassUpdate(BaseModel):
    """Editable class settings. ``member_limit`` is fixed at creation."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    prodi: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value is not None else None


class ClassRead(ClassBase):
    id: UUID
    creator_id: UUID
    member_limit: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClassWithStats(ClassRead):
    """Class row joined with its capacity figures."""

    creator_name: Optional[str] = None
    current_members: int = 0
    approved_members: int = 0
    pending_members: int = 0
    remaining_quota: int = 0
    is_full: bool = False
