"""Store-side error types and database error mapping."""

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError

# SQLSTATE codes reported to clients, matching what Postgres raises.
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"

CLASS_FULL = "CLASS_FULL"
INVALID_TRANSITION = "INVALID_TRANSITION"
ROLE_LOCKED = "ROLE_LOCKED"


class CodedHTTPException(HTTPException):
    """HTTPException that also carries a machine-readable error code."""

    def __init__(self, status_code: int, detail: str, code: str) -> None:
        super().__init__(status_code=status_code, detail=detail)
        self.code = code


class ClassFullError(CodedHTTPException):
    def __init__(self, member_limit: int) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Kelas sudah penuh. Batas maksimal {member_limit} anggota.",
            code=CLASS_FULL,
        )


def describe_integrity_error(exc: IntegrityError) -> tuple[str, str]:
    """Return a Postgres-style (message, sqlstate) pair for an IntegrityError."""
    raw = str(exc.orig).lower()
    pgcode = getattr(exc.orig, "pgcode", None)

    if pgcode == UNIQUE_VIOLATION or "unique" in raw or "duplicate key" in raw:
        return "duplicate key value violates unique constraint", UNIQUE_VIOLATION
    if pgcode == FOREIGN_KEY_VIOLATION or "foreign key" in raw:
        return "insert or update violates foreign key constraint", FOREIGN_KEY_VIOLATION
    if pgcode == NOT_NULL_VIOLATION or "not null" in raw or "not-null" in raw:
        return "null value violates not-null constraint", NOT_NULL_VIOLATION
    return "integrity constraint violated", pgcode or "23000"
