"""Ambient session state shared by every view."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Protocol

from classboard.sync.reconciler import Feed
from classboard.sync.store import RemoteStore

logger = logging.getLogger(__name__)


class Closable(Protocol):
    def close(self) -> None: ...


class AppContext:
    """Signed-in profile, connectivity flag and the shared store/feed."""

    def __init__(self, store: RemoteStore, feed: Feed, user: Optional[Dict[str, Any]] = None) -> None:
        self.store = store
        self.feed = feed
        self.user = user
        self._views: List[Closable] = []
        self._online_listeners: List[Callable[[bool], None]] = []

    @property
    def online(self) -> bool:
        return self.store.online

    @property
    def user_id(self) -> Optional[str]:
        return str(self.user["id"]) if self.user else None

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role") if self.user else None

    def set_online(self, online: bool) -> None:
        if online == self.store.online:
            return
        self.store.online = online
        logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        for callback in list(self._online_listeners):
            callback(online)

    def on_connectivity(self, callback: Callable[[bool], None]) -> None:
        self._online_listeners.append(callback)

    def register(self, view: Closable) -> None:
        self._views.append(view)

    def unregister(self, view: Closable) -> None:
        if view in self._views:
            self._views.remove(view)

    def close(self) -> None:
        """Close every registered view and forget the user."""
        views, self._views = self._views, []
        for view in views:
            view.close()
        self._online_listeners.clear()
        self.user = None


_current: ContextVar[Optional[AppContext]] = ContextVar("classboard_app_context", default=None)


@asynccontextmanager
async def provide_app_context(store: RemoteStore, feed: Feed) -> AsyncIterator[AppContext]:
    """Sign in: load the own profile and expose the context until exit."""
    user = await store.get_own_profile()
    context = AppContext(store, feed, user)
    token = _current.set(context)
    logger.info(f"Signed in as {context.user_id}")
    try:
        yield context
    finally:
        context.close()
        _current.reset(token)
        logger.info("Signed out")


def use_app_context() -> AppContext:
    context = _current.get()
    if context is None:
        raise RuntimeError("use_app_context() called outside provide_app_context()")
    return context
