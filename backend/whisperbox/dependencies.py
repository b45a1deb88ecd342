"""Reusable FastAPI dependencies."""
from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any, Dict

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_session
from .models import User
from .schemas import TokenData

# Use simple Bearer auth instead of OAuth2 password flow
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession."""
    async for session in get_session():
        yield session


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Return the signed-in user from a JWT access token
    taken from the Authorization: Bearer <token> header.
    """

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        token_data = decode_access_token(credentials.credentials)
        user_id = int(token_data.sub)
    except (jwt.PyJWTError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from exc

    user = await session.get(User, user_id)
    if user is None or not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    return user


def decode_access_token(token: str) -> TokenData:
    """Decode a JWT access token and return its payload."""

    payload: Dict[str, Any] = jwt.decode(
        token,
        get_settings().secret_key,
        algorithms=["HS256"],
    )
    return TokenData(**payload)


def token_payload(user: User) -> dict[str, Any]:
    """
    Generate the JWT payload for a given user.

    auth.sign_in() will add "exp" on top of this.
    """
    return {
        "sub": str(user.id),
        "username": user.username,
        "iat": int(datetime.now(timezone.utc).timestamp()),
    }
