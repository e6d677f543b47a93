from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status

from classboard.api.deps import get_current_user
from classboard.core.config import settings
from classboard.core.limiter import limiter
from classboard.db import SessionDep
from classboard.models import ClassMember, ClassRoom, Profile
from classboard.models.class_member import APPROVED
from classboard.schemas import (
    ChangeKind,
    ClassCreate,
    ClassUpdate,
    ClassWithStats,
    MemberRead,
    members_topic,
)
from classboard.schemas.change import MEMBERS_TABLE
from classboard.services.change_feed import emit_change
from classboard.services.membership import lock_class, request_join
from classboard.services.notifications import notify_join_requested, publish_notifications
from classboard.services.permissions import (
    ensure_class_access,
    ensure_role,
    get_class_or_404,
    get_membership,
)
from classboard.services.views import (
    class_with_stats,
    list_member_rows,
    load_member_row,
    search_classes,
)

router = APIRouter()


@router.post(
    "/",
    response_model=ClassWithStats,
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
)
def create_class(
    payload: ClassCreate,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> ClassWithStats:
    ensure_role(current_user, "creator")

    classroom = ClassRoom(**payload.model_dump(), creator_id=current_user.id)
    session.add(classroom)
    session.flush()

    # The creator is the first approved member.
    session.add(
        ClassMember(
            class_id=classroom.id,
            user_id=current_user.id,
            status=APPROVED,
            joined_at=datetime.utcnow(),
        )
    )
    session.commit()
    session.refresh(classroom)
    return class_with_stats(session, classroom)


@router.get(
    "/search",
    response_model=List[ClassWithStats],
    summary="Search active classes",
)
@limiter.limit(settings.SEARCH_RATE_LIMIT)
def search(
    request: Request,
    session: SessionDep,
    q: str = Query(min_length=1, max_length=100, description="Name, description or prodi fragment"),
    current_user: Profile = Depends(get_current_user),
) -> List[ClassWithStats]:
    return search_classes(session, q)


@router.get(
    "/{class_id}",
    response_model=ClassWithStats,
    summary="Get class with capacity stats",
)
def get_class(
    class_id: UUID,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> ClassWithStats:
    return class_with_stats(session, get_class_or_404(session, class_id))


@router.patch(
    "/{class_id}",
    response_model=ClassWithStats,
    summary="Update class settings",
)
def update_class(
    class_id: UUID,
    payload: ClassUpdate,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> ClassWithStats:
    classroom = ensure_class_access(session, class_id, current_user, require_creator=True)

    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(classroom, field, value)
    classroom.touch()

    session.add(classroom)
    session.commit()
    session.refresh(classroom)
    return class_with_stats(session, classroom)


@router.get(
    "/{class_id}/members",
    response_model=List[MemberRead],
    summary="List class members",
)
def list_members(
    class_id: UUID,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> List[MemberRead]:
    ensure_class_access(session, class_id, current_user)
    return list_member_rows(session, class_id)


@router.post(
    "/{class_id}/members",
    response_model=MemberRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request to join class",
)
@limiter.limit(settings.JOIN_RATE_LIMIT)
def join_class(
    request: Request,
    class_id: UUID,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_user),
) -> MemberRead:
    classroom = lock_class(session, class_id)
    membership = request_join(session, classroom, current_user.id)
    notification = notify_join_requested(session, classroom, current_user)
    session.commit()
    session.refresh(membership)

    row = load_member_row(session, membership)
    emit_change(
        background_tasks,
        kind=ChangeKind.INSERT,
        table=MEMBERS_TABLE,
        topic=members_topic(class_id),
        new=row.model_dump(mode="json"),
    )
    publish_notifications(background_tasks, [notification])
    return row


@router.get(
    "/{class_id}/members/by-user/{user_id}",
    response_model=MemberRead,
    summary="Get one user's membership in a class",
)
def get_user_membership(
    class_id: UUID,
    user_id: UUID,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> MemberRead:
    if user_id != current_user.id:
        ensure_class_access(session, class_id, current_user, require_creator=True)

    membership = get_membership(session, class_id, user_id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")
    return load_member_row(session, membership)
