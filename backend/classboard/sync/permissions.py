from __future__ import annotations

from typing import Any, Mapping, Optional


def can_manage_class(user: Optional[Mapping[str, Any]], classroom: Optional[Mapping[str, Any]]) -> bool:
    """Creator-only controls need role ``creator`` and ownership of the class."""
    if not user or not classroom:
        return False
    if user.get("role") != "creator":
        return False
    return str(user.get("id")) == str(classroom.get("creator_id"))
