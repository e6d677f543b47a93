from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

SCHEDULE_TYPES = ("homework", "exam")


class Schedule(SQLModel, table=True):
    """Homework or exam entry in a class schedule."""

    __tablename__ = "schedules"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    class_id: UUID = Field(foreign_key="classes.id", nullable=False, index=True)
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    schedule_date: date = Field(nullable=False, index=True)
    schedule_time: time = Field(nullable=False)
    type: str = Field(default="homework", max_length=16)
    created_by: UUID = Field(foreign_key="profiles.id", nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
