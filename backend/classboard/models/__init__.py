from .class_member import ClassMember
from .class_room import ClassRoom
from .notification import Notification
from .profile import Profile
from .schedule import Schedule

__all__ = [
    "ClassMember",
    "ClassRoom",
    "Notification",
    "Profile",
    "Schedule",
]
