#!/usr/bin/env python3
"""Create (or update) a profile and print an access token for it."""

import sys
from pathlib import Path

# Make the backend package importable when run from the scripts directory
BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BASE_DIR))

from sqlmodel import Session, select

from classboard.core.security import create_access_token
from classboard.db import engine, init_db
from classboard.models import Profile

ROLES = ("creator", "member")


def create_profile():
    print("=" * 60)
    print("Create profile")
    print("=" * 60)

    email = input("Email: ").strip().lower()
    if not email:
        print("Error: email is required")
        return

    full_name = input("Full name (optional): ").strip() or None
    role = input("Role (creator/member, empty to choose later): ").strip() or None
    if role is not None and role not in ROLES:
        print(f"Error: role must be one of {', '.join(ROLES)}")
        return

    init_db()
    with Session(engine) as session:
        existing = session.exec(select(Profile).where(Profile.email == email)).first()
        if existing:
            profile = existing
            profile.full_name = full_name or profile.full_name
            # Role can only be set once
            if role and not profile.role:
                profile.role = role
            profile.touch()
        else:
            profile = Profile(email=email, full_name=full_name, role=role)
        session.add(profile)
        session.commit()
        session.refresh(profile)

        print(f"\n✓ Profile {'updated' if existing else 'created'}")
        print(f"  ID: {profile.id}")
        print(f"  Email: {profile.email}")
        print(f"  Name: {profile.full_name or '(not set)'}")
        print(f"  Role: {profile.role or '(not chosen)'}")
        print(f"  Token: {create_access_token(profile.id)}")
        print("=" * 60)


if __name__ == "__main__":
    try:
        create_profile()
    except KeyboardInterrupt:
        print("\n\nCancelled")
