"""Authentication DTOs."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class TokenResponse(BaseModel):
    """Token response DTO."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int


class LoginRequest(BaseModel):
    """Email and password sign-in."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshTokenRequest(BaseModel):
    """Refresh token request."""

    refresh_token: str = Field(max_length=500)


class LogoutRequest(BaseModel):
    """Sign-out request.

    ``local`` revokes the presented refresh token, ``global`` every session.
    """

    refresh_token: str | None = Field(default=None, max_length=500)
    scope: Literal["local", "global"] = "local"


class PasswordChangeRequest(BaseModel):
    """Password change request."""

    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=1, max_length=128)


class PasswordResetEmailRequest(BaseModel):
    """Ask for a recovery link."""

    email: EmailStr
    redirect_to: str | None = Field(default=None, max_length=500)


class VerifyOneTimeTokenRequest(BaseModel):
    """Exchange a recovery token for a session."""

    token_hash: str = Field(min_length=1, max_length=500)


class CompletePasswordResetRequest(BaseModel):
    """Set a new password with a recovery token."""

    token_hash: str = Field(min_length=1, max_length=500)
    new_password: str = Field(min_length=1, max_length=128)


class UserInfo(BaseModel):
    """User info DTO."""

    id: UUID
    email: EmailStr
    name: str | None = None
    is_admin: bool
    is_active: bool
    last_login_at: datetime | None = None


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
