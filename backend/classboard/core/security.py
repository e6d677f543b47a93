from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from classboard.core.config import settings

ACCESS_TOKEN_TYPE = "access"


def create_access_token(profile_id: UUID | str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign an access token whose subject is a profile id.

    Tokens normally come from the identity provider; scripts and tests use
    this to sign one for an existing profile.
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: Dict[str, Any] = {
        "sub": str(profile_id),
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> UUID:
    """Return the profile id carried by ``token``; ValueError when it is unusable."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise ValueError("Invalid token type")
    try:
        return UUID(str(claims.get("sub")))
    except ValueError:
        raise ValueError("Invalid token subject") from None
