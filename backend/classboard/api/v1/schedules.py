from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from classboard.api.deps import get_current_user
from classboard.db import SessionDep
from classboard.models import Profile, Schedule
from classboard.schemas import (
    ChangeKind,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
    schedules_topic,
)
from classboard.schemas.change import SCHEDULES_TABLE
from classboard.services.change_feed import emit_change
from classboard.services.notifications import notify_schedule_created, publish_notifications
from classboard.services.permissions import ensure_class_access
from classboard.services.views import list_schedule_rows, load_schedule_row

router = APIRouter()


def _get_schedule_or_404(session: SessionDep, schedule_id: UUID) -> Schedule:
    schedule = session.get(Schedule, schedule_id)
    if not schedule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    return schedule


@router.get(
    "/classes/{class_id}/schedules",
    response_model=List[ScheduleRead],
    summary="List class schedules ordered by date and time",
)
def list_schedules(
    class_id: UUID,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> List[ScheduleRead]:
    ensure_class_access(session, class_id, current_user)
    return list_schedule_rows(session, class_id)


@router.post(
    "/classes/{class_id}/schedules",
    response_model=ScheduleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create schedule",
)
def create_schedule(
    class_id: UUID,
    payload: ScheduleCreate,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_user),
) -> ScheduleRead:
    classroom = ensure_class_access(session, class_id, current_user, require_creator=True)

    schedule = Schedule(**payload.model_dump(), class_id=class_id, created_by=current_user.id)
    session.add(schedule)
    session.flush()
    notifications = notify_schedule_created(session, classroom, schedule)
    session.commit()
    session.refresh(schedule)

    row = load_schedule_row(session, schedule)
    emit_change(
        background_tasks,
        kind=ChangeKind.INSERT,
        table=SCHEDULES_TABLE,
        topic=schedules_topic(class_id),
        new=row.model_dump(mode="json"),
    )
    publish_notifications(background_tasks, notifications)
    return row


@router.patch(
    "/schedules/{schedule_id}",
    response_model=ScheduleRead,
    summary="Update schedule",
)
def update_schedule(
    schedule_id: UUID,
    payload: ScheduleUpdate,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_user),
) -> ScheduleRead:
    schedule = _get_schedule_or_404(session, schedule_id)
    ensure_class_access(session, schedule.class_id, current_user, require_creator=True)

    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(schedule, field, value)
    schedule.touch()

    session.add(schedule)
    session.commit()
    session.refresh(schedule)

    row = load_schedule_row(session, schedule)
    emit_change(
        background_tasks,
        kind=ChangeKind.UPDATE,
        table=SCHEDULES_TABLE,
        topic=schedules_topic(schedule.class_id),
        new=row.model_dump(mode="json"),
    )
    return row


@router.delete(
    "/schedules/{schedule_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete schedule",
)
def delete_schedule(
    schedule_id: UUID,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_user),
) -> dict[str, str]:
    schedule = _get_schedule_or_404(session, schedule_id)
    ensure_class_access(session, schedule.class_id, current_user, require_creator=True)

    old_row = load_schedule_row(session, schedule).model_dump(mode="json")
    class_id = schedule.class_id
    session.delete(schedule)
    session.commit()

    emit_change(
        background_tasks,
        kind=ChangeKind.DELETE,
        table=SCHEDULES_TABLE,
        topic=schedules_topic(class_id),
        old=old_row,
    )
    return {"status": "deleted"}
