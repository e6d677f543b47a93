"""Change feed client over the ``/ws/feed`` websocket."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Dict, Optional
from urllib.parse import urlencode

import websockets
from pydantic import ValidationError

from classboard.schemas.change import ChangeEvent
from classboard.services.change_feed import Subscription

logger = logging.getLogger(__name__)


def parse_frame(raw: str | bytes) -> Optional[ChangeEvent]:
    """Return the ChangeEvent carried by a ``change`` frame, else None."""
    try:
        message = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring non-JSON feed frame")
        return None
    if not isinstance(message, dict) or message.get("type") != "change":
        return None
    try:
        return ChangeEvent.model_validate(message.get("data"))
    except ValidationError as e:
        logger.error(f"Discarding malformed change frame: {e}")
        return None


class WebSocketFeed:
    """Opens one websocket per subscribed topic.

    Subscriptions have the same interface as the in-process feed, so a
    reconciler works unchanged against either.
    """

    def __init__(self, url: str, token: str) -> None:
        self.url = url
        self.token = token
        self._tasks: Dict[Subscription, asyncio.Task] = {}

    def topic_url(self, topic: str) -> str:
        return f"{self.url}?{urlencode({'token': self.token, 'topic': topic})}"

    def subscribe(self, topic: str) -> Subscription:
        subscription = Subscription(self, topic)
        self._tasks[subscription] = asyncio.create_task(self._pump(subscription))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        task = self._tasks.pop(subscription, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _pump(self, subscription: Subscription) -> None:
        try:
            async with websockets.connect(self.topic_url(subscription.topic)) as ws:
                async for raw in ws:
                    event = parse_frame(raw)
                    if event is not None:
                        subscription.deliver(event)
        except websockets.ConnectionClosed as e:
            logger.info(f"Feed for {subscription.topic} closed: {e}")
        except OSError as e:
            logger.warning(f"Feed for {subscription.topic} unavailable: {e}")
        finally:
            subscription.cancel()

    async def aclose(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
