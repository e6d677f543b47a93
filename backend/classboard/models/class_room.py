from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class ClassRoom(SQLModel, table=True):
    """A class: a named group of members sharing one schedule list."""

    __tablename__ = "classes"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(index=True, unique=True, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    prodi: str = Field(default="Teknik Informatika", max_length=100)
    creator_id: UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    member_limit: int = Field(default=30, nullable=False)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
