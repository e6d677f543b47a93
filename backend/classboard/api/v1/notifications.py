from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlmodel import select

from classboard.api.deps import get_current_user
from classboard.core.config import settings
from classboard.db import SessionDep
from classboard.models import Notification, Profile
from classboard.schemas import ChangeKind, NotificationRead, NotificationUpdate, notifications_topic
from classboard.schemas.change import NOTIFICATIONS_TABLE
from classboard.services.change_feed import emit_change

router = APIRouter()


@router.get("/", response_model=List[NotificationRead], summary="List notifications")
def list_notifications(
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
    unread_only: bool = Query(default=False, description="Show only unread notifications"),
    limit: int = Query(
        default=settings.NOTIFICATIONS_LIMIT, ge=1, le=100, description="Maximum number of notifications"
    ),
) -> List[Notification]:
    """Get the caller's notifications, newest first."""
    statement = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        statement = statement.where(Notification.is_read == False)  # noqa: E712
    statement = statement.order_by(Notification.created_at.desc()).limit(limit)
    return list(session.exec(statement).all())


@router.patch("/mark-all-read", summary="Mark all notifications as read")
def mark_all_read(
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_user),
) -> dict[str, int]:
    statement = select(Notification).where(
        Notification.user_id == current_user.id,
        Notification.is_read == False,  # noqa: E712
    )
    notifications = session.exec(statement).all()

    now = datetime.utcnow()
    for notification in notifications:
        notification.is_read = True
        notification.read_at = now
        session.add(notification)
    session.commit()

    for notification in notifications:
        emit_change(
            background_tasks,
            kind=ChangeKind.UPDATE,
            table=NOTIFICATIONS_TABLE,
            topic=notifications_topic(current_user.id),
            new=NotificationRead.model_validate(notification).model_dump(mode="json"),
        )
    return {"marked": len(notifications)}


@router.patch(
    "/{notification_id}",
    response_model=NotificationRead,
    summary="Mark notification as read or unread",
)
def update_notification(
    notification_id: UUID,
    data: NotificationUpdate,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: Profile = Depends(get_current_user),
) -> Notification:
    notification = session.get(Notification, notification_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if notification.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="permission denied: not your notification",
        )

    notification.is_read = data.is_read
    if data.is_read and not notification.read_at:
        notification.read_at = datetime.utcnow()
    elif not data.is_read:
        notification.read_at = None

    session.add(notification)
    session.commit()
    session.refresh(notification)

    emit_change(
        background_tasks,
        kind=ChangeKind.UPDATE,
        table=NOTIFICATIONS_TABLE,
        topic=notifications_topic(current_user.id),
        new=NotificationRead.model_validate(notification).model_dump(mode="json"),
    )
    return notification
