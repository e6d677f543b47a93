"""Change events published on the realtime feed."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

SCHEDULES_TABLE = "schedules"
MEMBERS_TABLE = "class_members"
NOTIFICATIONS_TABLE = "notifications"

_TOPIC_RE = re.compile(r"^(?P<table>[a-z_]+):(?P<column>[a-z_]+)=eq\.(?P<value>[^\s]+)$")


class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


def feed_topic(table: str, column: str, value: Any) -> str:
    """Topic for rows of ``table`` whose ``column`` equals ``value``."""
    return f"{table}:{column}=eq.{value}"


def parse_topic(topic: str) -> tuple[str, str, str]:
    match = _TOPIC_RE.match(topic)
    if not match:
        raise ValueError(f"Malformed feed topic: {topic!r}")
    return match.group("table"), match.group("column"), match.group("value")


def schedules_topic(class_id: Any) -> str:
    return feed_topic(SCHEDULES_TABLE, "class_id", class_id)


def members_topic(class_id: Any) -> str:
    return feed_topic(MEMBERS_TABLE, "class_id", class_id)


def notifications_topic(user_id: Any) -> str:
    return feed_topic(NOTIFICATIONS_TABLE, "user_id", user_id)


class ChangeEvent(BaseModel):
    """One insert, update or delete on a scoped table.

    ``new`` holds the row image after an insert or update, ``old`` the row
    image removed by a delete. Row images are JSON-compatible dicts.
    """

    kind: ChangeKind
    table: str
    topic: str
    new: Optional[dict[str, Any]] = None
    old: Optional[dict[str, Any]] = None
    commit_timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def row_id(self) -> Optional[str]:
        image = self.old if self.kind is ChangeKind.DELETE else self.new
        if not image or image.get("id") is None:
            return None
        return str(image["id"])
