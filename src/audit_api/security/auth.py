"""Authentication and authorization utilities."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.config import get_settings
from audit_api.database import get_db
from audit_api.models.domain.admin_user import AdminUser
from audit_api.repositories.user_repository import UserRepository

ACCESS_TOKEN_TYPE = "access"


def hash_token(raw_token: str) -> str:
    """SHA-256 of an opaque token; only this digest is stored."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def create_refresh_token() -> tuple[str, str]:
    """Create an opaque refresh token.

    Returns:
        Tuple of (raw token for the client, hash for the database)
    """
    raw = secrets.token_urlsafe(48)
    return raw, hash_token(raw)


def create_one_time_token() -> tuple[str, str]:
    """Create a single-use password recovery token (raw, hash)."""
    raw = secrets.token_urlsafe(32)
    return raw, hash_token(raw)


def create_access_token(user_id: UUID, email: str) -> str:
    """Create a JWT access token.

    Args:
        user_id: User UUID
        email: User email

    Returns:
        JWT token string
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)

    payload = {
        "sub": str(user_id),
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "exp": now + timedelta(hours=settings.jwt_expiration_hours),
        "iat": now,
    }

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from e

    if payload.get("type") != ACCESS_TOKEN_TYPE or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return payload


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(HTTPBearer(auto_error=False))] = None,
) -> AdminUser:
    """Get the current authenticated user from the bearer token.

    The user is reloaded on every request so that deactivation and admin
    changes apply immediately.

    Raises:
        HTTPException: If authentication fails
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_token(credentials.credentials)

    try:
        user_id = UUID(payload["sub"])
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from e

    user = await UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return AdminUser.model_validate(user)
