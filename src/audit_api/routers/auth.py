"""Authentication router - local email/password accounts."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from audit_api.dependencies import get_auth_service
from audit_api.models.domain.admin_user import AdminUser
from audit_api.models.dto.auth import (
    CompletePasswordResetRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    PasswordChangeRequest,
    PasswordResetEmailRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserInfo,
    VerifyOneTimeTokenRequest,
)
from audit_api.security.auth import get_current_user
from audit_api.security.rate_limit import (
    API_DEFAULT_LIMIT,
    AUTH_LOGIN_LIMIT,
    AUTH_PASSWORD_CHANGE_LIMIT,
    AUTH_PASSWORD_RESET_LIMIT,
    AUTH_REFRESH_LIMIT,
    get_real_client_ip,
    limiter,
)
from audit_api.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
@limiter.limit(AUTH_LOGIN_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    user_agent: str | None = Header(default=None),
) -> TokenResponse:
    """Sign in with email and password."""
    return await auth_service.sign_in(
        body.email,
        body.password,
        user_agent=user_agent,
        ip_address=get_real_client_ip(request),
    )


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit(AUTH_REFRESH_LIMIT)
async def refresh_token(
    request: Request,
    body: RefreshTokenRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    user_agent: str | None = Header(default=None),
) -> TokenResponse:
    """Refresh access token using refresh token."""
    return await auth_service.refresh(
        body.refresh_token,
        user_agent=user_agent,
        ip_address=get_real_client_ip(request),
    )


@router.post("/logout")
@limiter.limit(AUTH_REFRESH_LIMIT)
async def logout(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    body: LogoutRequest | None = None,
    user_agent: str | None = Header(default=None),
) -> dict[str, int]:
    """Sign out this session (``local``) or every session (``global``)."""
    body = body or LogoutRequest()
    count = await auth_service.sign_out(
        current_user,
        refresh_token=body.refresh_token,
        scope=body.scope,
        ip_address=get_real_client_ip(request),
        user_agent=user_agent,
    )
    return {"sessions_revoked": count}


@router.get("/me", response_model=UserInfo)
@limiter.limit(API_DEFAULT_LIMIT)
async def get_current_user_info(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserInfo:
    """Get current user information, including the admin flag."""
    return await auth_service.get_user_info(current_user.id)


@router.post("/password/change", response_model=MessageResponse)
@limiter.limit(AUTH_PASSWORD_CHANGE_LIMIT)
async def change_password(
    request: Request,
    body: PasswordChangeRequest,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    user_agent: str | None = Header(default=None),
) -> MessageResponse:
    """Change password. Every session is signed out afterwards."""
    if body.current_password == body.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password must differ from the current password",
        )

    await auth_service.change_password(
        current_user.id,
        body.current_password,
        body.new_password,
        ip_address=get_real_client_ip(request),
        user_agent=user_agent,
    )
    return MessageResponse(message="Password changed")


@router.post("/password/reset-request", response_model=MessageResponse)
@limiter.limit(AUTH_PASSWORD_RESET_LIMIT)
async def request_password_reset(
    request: Request,
    body: PasswordResetEmailRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """Send a recovery link. The answer is the same whether the account exists or not."""
    await auth_service.send_password_reset_email(
        body.email,
        redirect_to=body.redirect_to,
        ip_address=get_real_client_ip(request),
    )
    return MessageResponse(message="If the account exists, a reset link has been sent")


@router.post("/password/verify", response_model=TokenResponse)
@limiter.limit(AUTH_PASSWORD_RESET_LIMIT)
async def verify_recovery_token(
    request: Request,
    body: VerifyOneTimeTokenRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    user_agent: str | None = Header(default=None),
) -> TokenResponse:
    """Exchange a recovery token for a session."""
    return await auth_service.verify_one_time_token(
        body.token_hash,
        user_agent=user_agent,
        ip_address=get_real_client_ip(request),
    )


@router.post("/password/reset", response_model=MessageResponse)
@limiter.limit(AUTH_PASSWORD_RESET_LIMIT)
async def complete_password_reset(
    request: Request,
    body: CompletePasswordResetRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    user_agent: str | None = Header(default=None),
) -> MessageResponse:
    """Set a new password with a recovery token. Every session is signed out."""
    await auth_service.complete_password_reset(
        body.token_hash,
        body.new_password,
        ip_address=get_real_client_ip(request),
        user_agent=user_agent,
    )
    return MessageResponse(message="Password updated")
