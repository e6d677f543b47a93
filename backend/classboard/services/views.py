"""
Read models for classes, members and schedules.

These mirror the store's views: ``classes_with_stats`` adds capacity figures
to a class, ``class_members_view`` adds profile fields to a membership and
``schedules_view`` adds the author's name to a schedule. Feed events carry the
same row shapes as the list endpoints.
"""

from __future__ import annotations

from typing import Iterable, List
from uuid import UUID

from sqlmodel import Session, col, func, or_, select

from classboard.models import ClassMember, ClassRoom, Profile, Schedule
from classboard.models.class_member import APPROVED, PENDING
from classboard.schemas import ClassWithStats, MemberRead, ScheduleRead


def member_counts(session: Session, class_id: UUID) -> dict[str, int]:
    rows = session.exec(
        select(ClassMember.status, func.count(ClassMember.id))
        .where(ClassMember.class_id == class_id)
        .group_by(ClassMember.status)
    ).all()
    return {status: count for status, count in rows}


def class_with_stats(
    session: Session,
    classroom: ClassRoom,
    creator_name: str | None = None,
) -> ClassWithStats:
    counts = member_counts(session, classroom.id)
    approved = counts.get(APPROVED, 0)
    pending = counts.get(PENDING, 0)
    if creator_name is None:
        creator = session.get(Profile, classroom.creator_id)
        creator_name = _display_name(creator)
    base = ClassWithStats.model_validate(classroom, from_attributes=True)
    return base.model_copy(
        update={
            "creator_name": creator_name,
            "current_members": approved,
            "approved_members": approved,
            "pending_members": pending,
            "remaining_quota": max(classroom.member_limit - approved, 0),
            "is_full": approved >= classroom.member_limit,
        }
    )


def search_classes(session: Session, term: str) -> List[ClassWithStats]:
    """Case-insensitive substring search over name, description and prodi."""
    pattern = f"%{term.strip()}%"
    statement = (
        select(ClassRoom, Profile)
        .join(Profile, Profile.id == ClassRoom.creator_id)
        .where(
            ClassRoom.is_active == True,  # noqa: E712
            or_(
                col(ClassRoom.name).ilike(pattern),
                col(ClassRoom.description).ilike(pattern),
                col(ClassRoom.prodi).ilike(pattern),
            ),
        )
        .order_by(ClassRoom.name)
    )
    return [
        class_with_stats(session, classroom, creator_name=_display_name(creator))
        for classroom, creator in session.exec(statement).all()
    ]


def member_row(member: ClassMember, profile: Profile | None) -> MemberRead:
    base = MemberRead.model_validate(member, from_attributes=True)
    if profile is None:
        return base
    return base.model_copy(
        update={
            "full_name": profile.full_name,
            "email": profile.email,
            "avatar_url": profile.avatar_url,
        }
    )


def load_member_row(session: Session, member: ClassMember) -> MemberRead:
    return member_row(member, session.get(Profile, member.user_id))


def list_member_rows(session: Session, class_id: UUID) -> List[MemberRead]:
    statement = (
        select(ClassMember, Profile)
        .join(Profile, Profile.id == ClassMember.user_id)
        .where(ClassMember.class_id == class_id)
        .order_by(col(ClassMember.created_at).desc())
    )
    return [member_row(member, profile) for member, profile in session.exec(statement).all()]


def schedule_row(schedule: Schedule, creator: Profile | None) -> ScheduleRead:
    base = ScheduleRead.model_validate(schedule, from_attributes=True)
    return base.model_copy(update={"creator_name": _display_name(creator)})


def load_schedule_row(session: Session, schedule: Schedule) -> ScheduleRead:
    return schedule_row(schedule, session.get(Profile, schedule.created_by))


def list_schedule_rows(session: Session, class_id: UUID) -> List[ScheduleRead]:
    statement = (
        select(Schedule, Profile)
        .join(Profile, Profile.id == Schedule.created_by)
        .where(Schedule.class_id == class_id)
        .order_by(Schedule.schedule_date, Schedule.schedule_time)
    )
    return [schedule_row(schedule, creator) for schedule, creator in session.exec(statement).all()]


def approved_member_ids(session: Session, class_id: UUID) -> Iterable[UUID]:
    return session.exec(
        select(ClassMember.user_id).where(
            ClassMember.class_id == class_id,
            ClassMember.status == APPROVED,
        )
    ).all()


def _display_name(profile: Profile | None) -> str | None:
    if profile is None:
        return None
    return profile.full_name or profile.email
