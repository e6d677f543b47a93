from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import select

from classboard.api.deps import get_current_user
from classboard.core.exceptions import ROLE_LOCKED, CodedHTTPException
from classboard.db import SessionDep
from classboard.models import ClassMember, ClassRoom, Profile
from classboard.models.class_member import APPROVED
from classboard.schemas import MembershipWithClass, ProfileRead, ProfileUpdate
from classboard.services.views import class_with_stats

router = APIRouter()


@router.get("/me", response_model=ProfileRead, summary="Get own profile")
def read_own_profile(current_user: Profile = Depends(get_current_user)) -> Profile:
    return current_user


@router.get("/{profile_id}", response_model=ProfileRead, summary="Get profile by id")
def read_profile(
    profile_id: UUID,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> Profile:
    profile = session.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.patch("/{profile_id}", response_model=ProfileRead, summary="Update profile")
def update_profile(
    profile_id: UUID,
    payload: ProfileUpdate,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> Profile:
    if profile_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="permission denied: can only update own profile",
        )

    update_data = payload.model_dump(exclude_unset=True)
    role = update_data.get("role")
    if role is not None and current_user.role and role != current_user.role:
        raise CodedHTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Role has already been chosen",
            code=ROLE_LOCKED,
        )
    if "full_name" in update_data and update_data["full_name"] is not None:
        update_data["full_name"] = update_data["full_name"].strip()

    for field, value in update_data.items():
        setattr(current_user, field, value)
    current_user.touch()

    session.add(current_user)
    session.commit()
    session.refresh(current_user)
    return current_user


@router.get(
    "/{profile_id}/classes",
    response_model=List[MembershipWithClass],
    summary="List classes the profile is an approved member of",
)
def list_profile_classes(
    profile_id: UUID,
    session: SessionDep,
    current_user: Profile = Depends(get_current_user),
) -> List[MembershipWithClass]:
    if profile_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="permission denied: can only list own classes",
        )

    statement = (
        select(ClassMember, ClassRoom)
        .join(ClassRoom, ClassRoom.id == ClassMember.class_id)
        .where(ClassMember.user_id == profile_id, ClassMember.status == APPROVED)
        .order_by(ClassMember.created_at)
    )
    return [
        MembershipWithClass(
            id=membership.id,
            class_id=membership.class_id,
            user_id=membership.user_id,
            status=membership.status,
            joined_at=membership.joined_at,
            created_at=membership.created_at,
            classroom=class_with_stats(session, classroom),
        )
        for membership, classroom in session.exec(statement).all()
    ]
