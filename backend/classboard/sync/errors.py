"""
Client-side error type for every remote store failure.

Responses are classified once, at the HTTP boundary, into a ``StoreError``
with a closed ``ErrorKind``. Views only ever read ``user_message``, which runs
the raw message through the same substring translation table the product UI
uses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from classboard.core.exceptions import CLASS_FULL, UNIQUE_VIOLATION

DEFAULT_MESSAGE = "Terjadi kesalahan"
OFFLINE_MESSAGE = "Tidak dapat menyimpan perubahan saat offline"
NETWORK_MESSAGE = "Tidak dapat terhubung ke server"

# Checked in order against the lower-cased raw message.
ERROR_TRANSLATIONS = (
    ("duplicate key value violates unique constraint", "Data sudah ada"),
    ("violates foreign key constraint", "Data terkait tidak ditemukan"),
    ("violates not-null constraint", "Data wajib tidak boleh kosong"),
    ("permission denied", "Tidak memiliki izin untuk aksi ini"),
    ("kelas sudah penuh", "Kelas sudah mencapai batas maksimal anggota"),
)


class ErrorKind(str, Enum):
    CONSTRAINT_VIOLATION = "constraint_violation"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    NETWORK = "network"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


def translate(message: Optional[str]) -> str:
    """Map a raw store message to the localized text shown to users."""
    if not message:
        return DEFAULT_MESSAGE
    lowered = message.lower()
    for needle, translated in ERROR_TRANSLATIONS:
        if needle in lowered:
            return translated
    return message


class StoreError(Exception):
    """A failed remote operation."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        # Capacity messages already carry the class limit.
        if self.code == CLASS_FULL:
            return self.message
        return translate(self.message)

    @property
    def is_duplicate(self) -> bool:
        return self.code == UNIQUE_VIOLATION

    def __repr__(self) -> str:
        return f"StoreError(kind={self.kind.value!r}, code={self.code!r}, message={self.message!r})"


class ValidationFailed(StoreError):
    """Form input rejected before any remote call."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        first = next(iter(self.errors.values()), DEFAULT_MESSAGE)
        super().__init__(ErrorKind.VALIDATION, first)

    @property
    def user_message(self) -> str:
        return self.message


def class_full_error(member_limit: int) -> StoreError:
    return StoreError(
        ErrorKind.CAPACITY_EXCEEDED,
        f"Kelas sudah penuh. Batas maksimal {member_limit} anggota.",
        code=CLASS_FULL,
    )


def offline_error(message: str = OFFLINE_MESSAGE) -> StoreError:
    return StoreError(ErrorKind.NETWORK, message)


def _detail_message(detail: Any) -> str:
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        first = detail[0]
        if isinstance(first, Mapping):
            return str(first.get("msg") or DEFAULT_MESSAGE)
    return DEFAULT_MESSAGE


def classify(status_code: int, payload: Any) -> StoreError:
    """Build a StoreError from an error response body ``{"detail", "code"}``."""
    if not isinstance(payload, Mapping):
        payload = {"detail": payload}
    message = _detail_message(payload.get("detail"))
    code = payload.get("code")

    if code == CLASS_FULL:
        kind = ErrorKind.CAPACITY_EXCEEDED
    elif (code and str(code).startswith("23")) or status_code == 409:
        kind = ErrorKind.CONSTRAINT_VIOLATION
    elif status_code == 404:
        kind = ErrorKind.NOT_FOUND
    elif status_code in (401, 403):
        kind = ErrorKind.UNAUTHORIZED
    elif status_code == 422:
        kind = ErrorKind.VALIDATION
    else:
        kind = ErrorKind.UNKNOWN
    return StoreError(kind, message, code=code, status_code=status_code)
