"""Rows and helpers shared by the test modules."""

import asyncio
from datetime import date, datetime, time, timedelta
from itertools import count

import httpx
from sqlmodel import Session

from classboard.core.security import create_access_token
from classboard.db import engine
from classboard.models import ClassMember, ClassRoom, Profile, Schedule

API = "/api/v1"

_sequence = count(1)


class RecordingTransport(httpx.ASGITransport):
    """ASGI transport that remembers every (method, path) it sends."""

    def __init__(self, app):
        super().__init__(app=app)
        self.requests = []

    async def handle_async_request(self, request):
        self.requests.append((request.method, request.url.path))
        return await super().handle_async_request(request)


def auth_headers(profile: Profile) -> dict:
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}


def _save(obj):
    with Session(engine, expire_on_commit=False) as session:
        session.add(obj)
        session.commit()
        session.refresh(obj)
    return obj


def make_profile(role="member", full_name=None) -> Profile:
    n = next(_sequence)
    return _save(
        Profile(
            email=f"user{n}@example.com",
            full_name=full_name if full_name is not None else f"User {n}",
            role=role,
        )
    )


def make_class(creator: Profile, name=None, member_limit=30, is_active=True) -> ClassRoom:
    """A class with its creator already approved, as the API creates it."""
    classroom = _save(
        ClassRoom(
            name=name or f"KELAS-{next(_sequence)}",
            description="Kelas untuk pengujian",
            creator_id=creator.id,
            member_limit=member_limit,
            is_active=is_active,
        )
    )
    add_member(classroom, creator, "approved")
    return classroom


def add_member(classroom: ClassRoom, profile: Profile, status="pending") -> ClassMember:
    return _save(
        ClassMember(
            class_id=classroom.id,
            user_id=profile.id,
            status=status,
            joined_at=datetime.utcnow() if status == "approved" else None,
        )
    )


def make_schedule(
    classroom: ClassRoom,
    author: Profile,
    title="Tugas Basis Data",
    days_ahead=3,
    at=time(10, 0),
    type="homework",
) -> Schedule:
    return _save(
        Schedule(
            class_id=classroom.id,
            title=title,
            description="Kerjakan latihan bab 2",
            schedule_date=date.today() + timedelta(days=days_ahead),
            schedule_time=at,
            type=type,
            created_by=author.id,
        )
    )


def schedule_payload(title="Ujian Tengah Semester", days_ahead=5, type="exam") -> dict:
    return {
        "title": title,
        "description": "Materi bab 1 sampai 4",
        "schedule_date": (date.today() + timedelta(days=days_ahead)).isoformat(),
        "schedule_time": "08:00:00",
        "type": type,
    }


async def wait_for(predicate, timeout=2.0):
    """Yield to the loop until ``predicate()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)
