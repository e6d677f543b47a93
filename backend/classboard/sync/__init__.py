"""Client kit: remote store, realtime reconciliation and view controllers."""

from .errors import ErrorKind, StoreError, ValidationFailed, translate
from .feed import WebSocketFeed
from .reconciler import LiveCollection, Reconciler
from .session import AppContext, provide_app_context, use_app_context
from .store import RemoteStore
from .views import (
    ClassSettingsView,
    CreateClassView,
    JoinClassView,
    MemberRoster,
    NotificationInbox,
    ProfileView,
    ScheduleBoard,
)

__all__ = [
    "AppContext",
    "ClassSettingsView",
    "CreateClassView",
    "ErrorKind",
    "JoinClassView",
    "LiveCollection",
    "MemberRoster",
    "NotificationInbox",
    "ProfileView",
    "Reconciler",
    "RemoteStore",
    "ScheduleBoard",
    "StoreError",
    "ValidationFailed",
    "WebSocketFeed",
    "provide_app_context",
    "translate",
]
