from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlmodel import Session, func, select

from classboard.core.exceptions import INVALID_TRANSITION, ClassFullError, CodedHTTPException
from classboard.models import ClassMember, ClassRoom
from classboard.models.class_member import APPROVED, PENDING, can_transition


def lock_class(session: Session, class_id: UUID) -> ClassRoom:
    """Load a class row with FOR UPDATE so capacity checks serialize."""
    classroom = session.exec(
        select(ClassRoom).where(ClassRoom.id == class_id).with_for_update()
    ).one_or_none()
    if not classroom:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Class not found"
        )
    return classroom


def approved_count(session: Session, class_id: UUID) -> int:
    return session.exec(
        select(func.count(ClassMember.id)).where(
            ClassMember.class_id == class_id,
            ClassMember.status == APPROVED,
        )
    ).one()


def ensure_capacity(session: Session, classroom: ClassRoom) -> None:
    if approved_count(session, classroom.id) >= classroom.member_limit:
        raise ClassFullError(classroom.member_limit)


def request_join(session: Session, classroom: ClassRoom, user_id: UUID) -> ClassMember:
    """Add a pending membership; the caller holds the class row lock.

    A second request for the same (user, class) fails on the unique
    constraint when the session flushes.
    """
    if not classroom.is_active:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Class is not active"
        )
    ensure_capacity(session, classroom)
    membership = ClassMember(class_id=classroom.id, user_id=user_id, status=PENDING)
    session.add(membership)
    session.flush()
    return membership


def change_status(
    session: Session,
    membership: ClassMember,
    classroom: ClassRoom,
    new_status: str,
) -> ClassMember:
    if not can_transition(membership.status, new_status):
        raise CodedHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot change membership from {membership.status} to {new_status}",
            code=INVALID_TRANSITION,
        )
    if new_status == APPROVED:
        ensure_capacity(session, classroom)
        membership.joined_at = datetime.utcnow()
    membership.status = new_status
    membership.touch()
    session.add(membership)
    return membership
