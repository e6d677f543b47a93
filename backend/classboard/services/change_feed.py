"""
Change feed for realtime table updates.

Every mutation publishes a ChangeEvent; subscribers receive the events of one
topic (table + scope filter) through a cancellable Subscription. With Redis
configured, events travel through a single pub/sub channel so every API
process sees them; otherwise they are dispatched in-process.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Dict, Optional, Set

import redis.asyncio as aioredis
from fastapi import BackgroundTasks
from pydantic import ValidationError
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from classboard.core.config import settings
from classboard.schemas.change import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Queue of change events for one topic, cancelled with ``cancel()``."""

    def __init__(self, feed: "ChangeFeed", topic: str, maxsize: int = 0):
        self.topic = topic
        self._feed = feed
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: ChangeEvent) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Subscription queue full for {self.topic}, dropping {event.kind.value} event")

    def get_nowait(self) -> Optional[ChangeEvent]:
        """Next queued event, or None when nothing is pending."""
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return None
            if item is not _CLOSED:
                return item

    async def get(self) -> Optional[ChangeEvent]:
        """Wait for the next event; None once the subscription is cancelled."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        return None if item is _CLOSED else item

    def cancel(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed.unsubscribe(self)
        # Wake a pending get(); a full queue already has something to return.
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ChangeEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.cancel()


class ChangeFeed:
    """Publishes change events and fans them out to local subscriptions."""

    def __init__(self, channel: str = settings.FEED_CHANNEL, queue_size: int = settings.FEED_QUEUE_SIZE):
        self.channel = channel
        self.queue_size = queue_size
        self.redis: Optional[aioredis.Redis] = None
        self.pubsub: Optional[PubSub] = None
        self._listener_task: Optional[asyncio.Task] = None
        self._subscriptions: Dict[str, Set[Subscription]] = {}

    @property
    def backend(self) -> str:
        return "redis" if self.redis is not None else "local"

    async def connect(self, url: Optional[str] = None) -> None:
        """Connect to Redis; stay in-process if no URL is set or Redis is down."""
        url = settings.REDIS_URL if url is None else url
        if not url:
            logger.info("Change feed running in-process (no REDIS_URL)")
            return
        try:
            self.redis = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
            self.pubsub = self.redis.pubsub()
            await self.pubsub.subscribe(self.channel)
            logger.info(f"Change feed connected to Redis channel '{self.channel}'")
            self._listener_task = asyncio.create_task(self._listen())
        except (RedisError, OSError) as e:
            logger.warning(f"Failed to connect change feed to Redis: {e}. Using in-process dispatch.")
            await self._close_redis()

    async def disconnect(self) -> None:
        if self._listener_task:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None
        await self._close_redis()
        logger.info("Change feed disconnected")

    async def _close_redis(self) -> None:
        if self.pubsub is not None:
            try:
                await self.pubsub.unsubscribe(self.channel)
                await self.pubsub.aclose()
            except (RedisError, OSError) as e:
                logger.debug(f"Ignoring error while closing pubsub: {e}")
        if self.redis is not None:
            try:
                await self.redis.aclose()
            except (RedisError, OSError) as e:
                logger.debug(f"Ignoring error while closing Redis: {e}")
        self.pubsub = None
        self.redis = None

    def subscribe(self, topic: str) -> Subscription:
        subscription = Subscription(self, topic, maxsize=self.queue_size)
        self._subscriptions.setdefault(topic, set()).add(subscription)
        logger.debug(f"Subscribed to {topic} ({len(self._subscriptions[topic])} active)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.topic)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscriptions[subscription.topic]
        logger.debug(f"Unsubscribed from {subscription.topic}")

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, ()))

    def dispatch(self, event: ChangeEvent) -> int:
        """Hand an event to every local subscription on its topic."""
        subscribers = list(self._subscriptions.get(event.topic, ()))
        for subscription in subscribers:
            subscription.deliver(event)
        return len(subscribers)

    async def publish(self, event: ChangeEvent) -> None:
        if self.redis is None:
            self.dispatch(event)
            return
        try:
            await self.redis.publish(self.channel, event.model_dump_json())
            logger.debug(f"Published {event.kind.value} on {event.topic} to Redis")
        except RedisError as e:
            logger.error(f"Error publishing to Redis, dispatching locally: {e}")
            self.dispatch(event)

    async def _listen(self) -> None:
        logger.info("Starting change feed listener...")
        try:
            async for message in self.pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event = ChangeEvent.model_validate_json(message["data"])
                except ValidationError as e:
                    logger.error(f"Discarding malformed change event: {e}")
                    continue
                self.dispatch(event)
        except asyncio.CancelledError:
            logger.info("Change feed listener cancelled")
        except RedisError as e:
            logger.error(f"Change feed listener error: {e}", exc_info=True)

    def clear(self) -> None:
        """Cancel every local subscription."""
        for subscribers in list(self._subscriptions.values()):
            for subscription in list(subscribers):
                subscription.cancel()
        self._subscriptions.clear()


def emit_change(
    background_tasks: BackgroundTasks,
    *,
    kind: ChangeKind,
    table: str,
    topic: str,
    new: Optional[dict] = None,
    old: Optional[dict] = None,
) -> ChangeEvent:
    """Publish a change once the response has been sent."""
    event = ChangeEvent(kind=kind, table=table, topic=topic, new=new, old=old)
    background_tasks.add_task(change_feed.publish, event)
    return event


# Global instance
change_feed = ChangeFeed()
