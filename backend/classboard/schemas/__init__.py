from .change import (
    ChangeEvent,
    ChangeKind,
    feed_topic,
    members_topic,
    notifications_topic,
    parse_topic,
    schedules_topic,
)
from .class_room import ClassCreate, ClassRead, ClassUpdate, ClassWithStats
from .member import MemberRead, MembershipWithClass, MemberStatusUpdate
from .notification import NotificationRead, NotificationUpdate
from .profile import ProfileRead, ProfileUpdate
from .schedule import ScheduleCreate, ScheduleRead, ScheduleUpdate

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "ClassCreate",
    "ClassRead",
    "ClassUpdate",
    "ClassWithStats",
    "MemberRead",
    "MembershipWithClass",
    "MemberStatusUpdate",
    "NotificationRead",
    "NotificationUpdate",
    "ProfileRead",
    "ProfileUpdate",
    "ScheduleCreate",
    "ScheduleRead",
    "ScheduleUpdate",
    "feed_topic",
    "members_topic",
    "notifications_topic",
    "parse_topic",
    "schedules_topic",
]
