"""List helpers for the schedule board: filtering, sorting and counts."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

Row = Dict[str, Any]

FILTER_ALL = "all"
SORT_KEYS = ("date", "title", "type")

PAST = "past"
TODAY = "today"
UPCOMING = "upcoming"

STATUS_LABELS = {
    PAST: "Selesai",
    TODAY: "Hari ini",
    UPCOMING: "Mendatang",
}


def schedule_datetime(row: Mapping[str, Any]) -> datetime:
    day = row["schedule_date"]
    at = row["schedule_time"]
    if not isinstance(day, date):
        day = date.fromisoformat(str(day))
    if not isinstance(at, time):
        at = time.fromisoformat(str(at))
    return datetime.combine(day, at)


def filter_schedules(rows: Iterable[Row], type_filter: str = FILTER_ALL, search: str = "") -> List[Row]:
    """Keep rows of one type whose title or description contains ``search``."""
    needle = search.strip().lower()
    result = []
    for row in rows:
        if type_filter != FILTER_ALL and row.get("type") != type_filter:
            continue
        if needle:
            haystack = f"{row.get('title') or ''}\n{row.get('description') or ''}".lower()
            if needle not in haystack:
                continue
        result.append(row)
    return result


def sort_schedules(rows: Iterable[Row], by: str = "date") -> List[Row]:
    if by == "date":
        return sorted(rows, key=schedule_datetime)
    if by == "title":
        return sorted(rows, key=lambda row: (row.get("title") or "").lower())
    if by == "type":
        return sorted(rows, key=lambda row: row.get("type") or "")
    raise ValueError(f"Unknown sort key {by!r}; expected one of {SORT_KEYS}")


def time_status(row: Mapping[str, Any], now: Optional[datetime] = None) -> Tuple[str, str]:
    """(status, label): past rows are done, later today is today, else upcoming."""
    now = now or datetime.now()
    at = schedule_datetime(row)
    if at < now:
        status = PAST
    elif at.date() == now.date():
        status = TODAY
    else:
        status = UPCOMING
    return status, STATUS_LABELS[status]


def dashboard_counts(
    rows: Iterable[Row],
    classroom: Optional[Mapping[str, Any]] = None,
    today: Optional[date] = None,
) -> Dict[str, int]:
    today = today or date.today()
    week_end = today + timedelta(days=7)
    rows = list(rows)
    dates = [schedule_datetime(row).date() for row in rows]
    classroom = classroom or {}
    return {
        "total": len(rows),
        "today": sum(1 for day in dates if day == today),
        "upcoming_week": sum(1 for day in dates if today <= day <= week_end),
        "approved_members": int(classroom.get("approved_members") or 0),
        "pending_members": int(classroom.get("pending_members") or 0),
    }
