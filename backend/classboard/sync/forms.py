"""
Pre-submit form checks.

Each validator returns a ``{field: message}`` dict, empty when the input is
acceptable. ``require_valid`` turns a non-empty result into ``ValidationFailed``.
"""

from __future__ import annotations

from datetime import date, time, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional

from classboard.core.config import settings
from classboard.sync.errors import ValidationFailed

SCHEDULE_TYPES = ("homework", "exam")
ROLES = ("creator", "member")
EDIT_PAST_DAYS = 30

Errors = Dict[str, str]


def _text(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    return str(value).strip() if value is not None else ""


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def _as_time(value: Any) -> Optional[time]:
    if isinstance(value, time):
        return value
    if not value:
        return None
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        return None


def one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:  # 29 February
        return day.replace(year=day.year + 1, day=28)


def _schedule_fields(data: Mapping[str, Any]) -> Errors:
    """Title, description, time and type rules shared by create and edit."""
    errors: Errors = {}

    title = _text(data, "title")
    if not title:
        errors["title"] = "Judul tidak boleh kosong"
    elif len(title) < 3:
        errors["title"] = "Judul minimal 3 karakter"
    elif len(title) > 100:
        errors["title"] = "Judul maksimal 100 karakter"

    description = _text(data, "description")
    if not description:
        errors["description"] = "Deskripsi tidak boleh kosong"
    elif len(description) < 5:
        errors["description"] = "Deskripsi minimal 5 karakter"
    elif len(description) > 500:
        errors["description"] = "Deskripsi maksimal 500 karakter"

    raw_time = data.get("schedule_time")
    if not raw_time:
        errors["schedule_time"] = "Waktu tidak boleh kosong"
    elif _as_time(raw_time) is None:
        errors["schedule_time"] = "Format waktu tidak valid"

    if data.get("type") not in SCHEDULE_TYPES:
        errors["type"] = "Jenis kegiatan tidak valid"

    return errors


def _schedule_date_error(data: Mapping[str, Any]) -> Optional[str]:
    raw_date = data.get("schedule_date")
    if not raw_date:
        return "Tanggal tidak boleh kosong"
    if _as_date(raw_date) is None:
        return "Format tanggal tidak valid"
    return None


def validate_schedule(data: Mapping[str, Any], today: Optional[date] = None) -> Errors:
    """Check a new schedule: dated from today up to one year ahead."""
    today = today or date.today()
    errors = _schedule_fields(data)

    message = _schedule_date_error(data)
    if message is None:
        schedule_date = _as_date(data["schedule_date"])
        if schedule_date < today:
            message = "Tanggal tidak boleh di masa lalu"
        elif schedule_date > one_year_after(today):
            message = "Tanggal tidak boleh lebih dari 1 tahun ke depan"
    if message:
        errors["schedule_date"] = message

    return errors


def validate_schedule_edit(data: Mapping[str, Any], today: Optional[date] = None) -> Errors:
    """Check an edited schedule. Past dates are fine within the last 30 days."""
    today = today or date.today()
    errors = _schedule_fields(data)

    message = _schedule_date_error(data)
    if message is None and _as_date(data["schedule_date"]) < today - timedelta(days=EDIT_PAST_DAYS):
        message = "Tanggal terlalu jauh di masa lalu"
    if message:
        errors["schedule_date"] = message

    return errors


def validate_class(data: Mapping[str, Any], existing_names: Iterable[str] = ()) -> Errors:
    """Check a new class. ``existing_names`` come from a search for the name."""
    errors: Errors = {}

    name = _text(data, "name")
    if not name:
        errors["name"] = "Nama kelas tidak boleh kosong"
    elif len(name) < 3:
        errors["name"] = "Nama kelas minimal 3 karakter"
    elif len(name) > 50:
        errors["name"] = "Nama kelas maksimal 50 karakter"
    elif name.upper() in {existing.upper() for existing in existing_names}:
        errors["name"] = "Nama kelas sudah digunakan, pilih nama lain"

    description = _text(data, "description")
    if not description:
        errors["description"] = "Deskripsi tidak boleh kosong"
    elif len(description) < 10:
        errors["description"] = "Deskripsi minimal 10 karakter"
    elif len(description) > 500:
        errors["description"] = "Deskripsi maksimal 500 karakter"

    member_limit = data.get("member_limit", settings.DEFAULT_MEMBER_LIMIT)
    if not isinstance(member_limit, int) or member_limit < settings.MIN_MEMBER_LIMIT:
        errors["member_limit"] = f"Batas anggota minimal {settings.MIN_MEMBER_LIMIT} orang"
    elif member_limit > settings.MAX_MEMBER_LIMIT:
        errors["member_limit"] = f"Batas anggota maksimal {settings.MAX_MEMBER_LIMIT} orang"

    if not _text(data, "prodi"):
        errors["prodi"] = "Program studi harus dipilih"

    return errors


def validate_class_settings(data: Mapping[str, Any]) -> Errors:
    errors: Errors = {}
    if not _text(data, "name"):
        errors["name"] = "Nama kelas tidak boleh kosong"
    if not _text(data, "description"):
        errors["description"] = "Deskripsi kelas tidak boleh kosong"
    return errors


def validate_profile(data: Mapping[str, Any]) -> Errors:
    if not _text(data, "full_name"):
        return {"full_name": "Nama lengkap tidak boleh kosong"}
    return {}


def validate_role(role: Any) -> Errors:
    if role not in ROLES:
        return {"role": "Role tidak valid"}
    return {}


def require_valid(errors: Errors) -> None:
    if errors:
        raise ValidationFailed(errors)
