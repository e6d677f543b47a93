from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

MEMBERSHIP_STATUSES = (PENDING, APPROVED, REJECTED)

# Approved and rejected are terminal.
ALLOWED_TRANSITIONS: dict[str, tuple[str, ...]] = {
    PENDING: (APPROVED, REJECTED),
    APPROVED: (),
    REJECTED: (),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, ())


class ClassMember(SQLModel, table=True):
    """Membership of a user in a class."""

    __tablename__ = "class_members"
    __table_args__ = (
        UniqueConstraint("user_id", "class_id", name="uq_class_members_user_class"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    class_id: UUID = Field(foreign_key="classes.id", nullable=False, index=True)
    user_id: UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    status: str = Field(default=PENDING, max_length=16, index=True)
    joined_at: Optional[datetime] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
