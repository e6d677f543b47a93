from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .class_room import ClassWithStats

MembershipStatus = Literal["pending", "approved", "rejected"]


class MemberRead(BaseModel):
    """Membership row with the member's profile fields."""

    id: UUID
    class_id: UUID
    user_id: UUID
    status: MembershipStatus
    joined_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    full_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MemberStatusUpdate(BaseModel):
    status: Literal["approved", "rejected"]


class MembershipWithClass(BaseModel):
    id: UUID
    class_id: UUID
    user_id: UUID
    status: MembershipStatus
    joined_at: Optional[datetime] = None
    created_at: datetime
    classroom: ClassWithStats
