from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class NotificationBase(BaseModel):
    type: str
    title: str
    message: str


class NotificationRead(NotificationBase):
    id: UUID
    user_id: UUID
    class_id: UUID | None = None
    is_read: bool
    created_at: datetime
    read_at: datetime | None = None

    model_config = {"from_attributes": True}


class NotificationUpdate(BaseModel):
    is_read: bool
