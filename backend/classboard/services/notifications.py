from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import BackgroundTasks
from sqlmodel import Session

from classboard.models import ClassRoom, Notification, Profile, Schedule
from classboard.schemas import ChangeKind, NotificationRead, notifications_topic
from classboard.schemas.change import NOTIFICATIONS_TABLE
from classboard.services.change_feed import emit_change
from classboard.services.views import approved_member_ids


def create_notification(
    session: Session,
    user_id: UUID,
    type: str,
    title: str,
    message: str,
    class_id: UUID | None = None,
) -> Notification:
    """Create a notification for a user."""
    notification = Notification(
        user_id=user_id,
        class_id=class_id,
        type=type,
        title=title,
        message=message,
    )
    session.add(notification)
    return notification


def notify_join_requested(
    session: Session,
    classroom: ClassRoom,
    requester: Profile,
) -> Notification:
    """Tell the class creator someone asked to join."""
    name = requester.full_name or requester.email
    return create_notification(
        session=session,
        user_id=classroom.creator_id,
        type="join_requested",
        title="Permintaan bergabung",
        message=f"{name} ingin bergabung dengan kelas {classroom.name}",
        class_id=classroom.id,
    )


def notify_member_status(
    session: Session,
    classroom: ClassRoom,
    user_id: UUID,
    status: str,
) -> Notification:
    if status == "approved":
        title = "Permintaan disetujui"
        message = f"Anda sekarang anggota kelas {classroom.name}"
    else:
        title = "Permintaan ditolak"
        message = f"Permintaan Anda untuk bergabung dengan kelas {classroom.name} ditolak"
    return create_notification(
        session=session,
        user_id=user_id,
        type=f"member_{status}",
        title=title,
        message=message,
        class_id=classroom.id,
    )


def notify_schedule_created(
    session: Session,
    classroom: ClassRoom,
    schedule: Schedule,
) -> List[Notification]:
    """Notify every approved member except the author about a new schedule."""
    label = "Ujian" if schedule.type == "exam" else "Tugas"
    notifications = []
    for user_id in approved_member_ids(session, classroom.id):
        if user_id == schedule.created_by:
            continue
        notifications.append(
            create_notification(
                session=session,
                user_id=user_id,
                type="schedule_created",
                title=f"{label} baru",
                message=f"{schedule.title} pada {schedule.schedule_date:%d-%m-%Y} {schedule.schedule_time:%H:%M}",
                class_id=classroom.id,
            )
        )
    return notifications


def publish_notifications(
    background_tasks: BackgroundTasks,
    notifications: List[Notification],
) -> None:
    """Emit insert events for committed notifications on each user's topic."""
    for notification in notifications:
        emit_change(
            background_tasks,
            kind=ChangeKind.INSERT,
            table=NOTIFICATIONS_TABLE,
            topic=notifications_topic(notification.user_id),
            new=NotificationRead.model_validate(notification).model_dump(mode="json"),
        )
