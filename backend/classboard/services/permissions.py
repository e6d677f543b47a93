from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlmodel import Session, select

from classboard.models import ClassMember, ClassRoom, Profile
from classboard.models.class_member import APPROVED


def is_class_creator(classroom: ClassRoom, user: Profile) -> bool:
    return classroom.creator_id == user.id


def get_membership(session: Session, class_id: UUID, user_id: UUID) -> ClassMember | None:
    return session.exec(
        select(ClassMember).where(
            ClassMember.class_id == class_id,
            ClassMember.user_id == user_id,
        )
    ).one_or_none()


def get_class_or_404(session: Session, class_id: UUID) -> ClassRoom:
    classroom = session.get(ClassRoom, class_id)
    if not classroom:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Class not found"
        )
    return classroom


def ensure_class_access(
    session: Session,
    class_id: UUID,
    user: Profile,
    require_creator: bool = False,
) -> ClassRoom:
    """Load a class the user may see; creators pass every check.

    Approved members may read schedules and members. Creator-only actions
    pass ``require_creator=True``.
    """
    classroom = get_class_or_404(session, class_id)
    if is_class_creator(classroom, user):
        return classroom

    if require_creator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="permission denied: only the class creator can do this",
        )

    membership = get_membership(session, class_id, user.id)
    if membership is None or membership.status != APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="permission denied: not a class member"
        )
    return classroom


def ensure_role(user: Profile, role: str) -> None:
    if user.role != role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"permission denied: role '{role}' required",
        )
