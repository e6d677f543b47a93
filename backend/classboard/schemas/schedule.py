from __future__ import annotations

from datetime import date, datetime, time
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ScheduleType = Literal["homework", "exam"]


class ScheduleBase(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    schedule_date: date
    schedule_time: time
    type: ScheduleType = "homework"


class ScheduleCreate(ScheduleBase):
    pass


class ScheduleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    schedule_date: Optional[date] = None
    schedule_time: Optional[time] = None
    type: Optional[ScheduleType] = None


class ScheduleRead(ScheduleBase):
    id: UUID
    class_id: UUID
    created_by: UUID
    creator_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
