"""WebSocket endpoint streaming change events for one topic."""

import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlmodel import Session

from classboard.api.deps import load_profile
from classboard.db import engine
from classboard.models import Profile
from classboard.schemas.change import MEMBERS_TABLE, NOTIFICATIONS_TABLE, SCHEDULES_TABLE, parse_topic
from classboard.services.change_feed import Subscription, change_feed
from classboard.services.permissions import ensure_class_access

logger = logging.getLogger(__name__)

router = APIRouter()


def authorize_topic(session: Session, user: Profile, topic: str) -> None:
    """Raise if ``user`` may not follow ``topic``."""
    try:
        table, column, value = parse_topic(topic)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None

    if table in (SCHEDULES_TABLE, MEMBERS_TABLE) and column == "class_id":
        try:
            class_id = UUID(value)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid class id") from None
        ensure_class_access(session, class_id, user)
        return

    if table == NOTIFICATIONS_TABLE and column == "user_id" and value == str(user.id):
        return

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"permission denied: cannot follow {topic}",
    )


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    async for event in subscription:
        await websocket.send_json({"type": "change", "data": event.model_dump(mode="json")})


@router.websocket("/feed")
async def websocket_feed(
    websocket: WebSocket,
    token: str = Query(...),
    topic: str = Query(...),
):
    """
    Stream inserts, updates and deletes for one topic.

    Client connects with: ws://host/api/v1/ws/feed?token=JWT&topic=schedules:class_id=eq.<id>

    Messages format:
    {
        "type": "change",
        "data": {"kind": "INSERT", "table": "schedules", "topic": "...", "new": {...}, "old": null, ...}
    }
    """
    await websocket.accept()

    try:
        with Session(engine) as session:
            user = load_profile(session, token)
            authorize_topic(session, user, topic)
            user_id = user.id
    except HTTPException as e:
        logger.info(f"WebSocket feed rejected for topic {topic}: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(e.detail))
        return

    subscription = change_feed.subscribe(topic)
    forward_task = asyncio.create_task(_forward(websocket, subscription))

    try:
        await websocket.send_json({
            "type": "connected",
            "topic": topic,
            "user_id": str(user_id),
        })
        logger.info(f"WebSocket feed established for user {user_id} on {topic}")

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.info(f"WebSocket feed disconnected for user {user_id}")
    finally:
        subscription.cancel()
        forward_task.cancel()
        try:
            await forward_task
        except asyncio.CancelledError:
            pass
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Forwarding stopped for {topic}: {e}")
        logger.info(f"WebSocket feed closed for user {user_id}")
