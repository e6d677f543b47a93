from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from classboard.api.deps import get_current_user
from classboard.db import SessionDep
from classboard.models import ClassMember, Profile
from classboard.schemas import ChangeKind, MemberRead, MemberStatusUpdate, members_topic
from classboard.schemas.change import MEMBERS_TABLE
from classboard.services.change_feed import emit_change
from classboard.services.membership import change_status, lock_class
from classboard.services.notifications import notify_member_status, publish_notifications
from classboard.services.permissions import ensure_class_access
from classboard.services.views import load_member_row

router = APIRouter()


@router.patch(
    "/members/{member_id}",
    response_model=MemberRead,
    summary="Approve or reject a membership request",
)
def update_member_status(
    member_id: UUID,
    payload: MemberStatusUpdate,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_user),
) -> MemberRead:
    membership = session.get(ClassMember, member_id)
    if not membership:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")

    ensure_class_access(session, membership.class_id, current_user, require_creator=True)
    classroom = lock_class(session, membership.class_id)

    change_status(session, membership, classroom, payload.status)
    notification = notify_member_status(session, classroom, membership.user_id, payload.status)
    session.commit()
    session.refresh(membership)

    row = load_member_row(session, membership)
    emit_change(
        background_tasks,
        kind=ChangeKind.UPDATE,
        table=MEMBERS_TABLE,
        topic=members_topic(membership.class_id),
        new=row.model_dump(mode="json"),
    )
    publish_notifications(background_tasks, [notification])
    return row
