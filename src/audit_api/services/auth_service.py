"""Authentication service."""

import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode, urlsplit
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.config import get_settings
from audit_api.exceptions import AuthenticationError, PasswordPolicyError, UserNotFoundError
from audit_api.models.domain.admin_user import AdminUser
from audit_api.models.dto.auth import TokenResponse, UserInfo
from audit_api.models.orm.admin_user import AdminUserORM
from audit_api.repositories.user_repository import (
    PasswordResetTokenRepository,
    RefreshTokenRepository,
    UserRepository,
)
from audit_api.security.auth import (
    create_access_token,
    create_one_time_token,
    create_refresh_token,
    hash_token,
)
from audit_api.security.password import get_password_service
from audit_api.services.email_service import EmailService
from audit_api.utils.security_events import SecurityEventType, log_security_event

logger = logging.getLogger(__name__)

RESET_PATH = "/auth/reset"


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession, email_service: EmailService | None = None) -> None:
        """Initialize service with database session."""
        self.session = session
        self.user_repo = UserRepository(session)
        self.token_repo = RefreshTokenRepository(session)
        self.reset_repo = PasswordResetTokenRepository(session)
        self.password_service = get_password_service()
        self.email_service = email_service or EmailService()

    async def _issue_session(
        self,
        user: AdminUserORM,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenResponse:
        """Create an access token and a stored refresh token. Caller commits."""
        settings = get_settings()
        access_token = create_access_token(user_id=user.id, email=user.email)

        raw_refresh, refresh_hash = create_refresh_token()
        expires_at = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_days)

        await self.token_repo.create_token(
            user_id=user.id,
            token_hash=refresh_hash,
            expires_at=expires_at,
            user_agent=user_agent,
            ip_address=ip_address,
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=raw_refresh,
            expires_in=settings.jwt_expiration_hours * 3600,
        )

    async def sign_in(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenResponse:
        """Authenticate with email and password.

        Every failure surfaces as the same "Invalid credentials" error so the
        response does not reveal whether the account exists.

        Raises:
            AuthenticationError: If authentication fails
        """
        user = await self.user_repo.get_by_email(email)

        if (
            user is None
            or not user.is_active
            or not user.password_hash
            or not self.password_service.verify_password(password, user.password_hash)
        ):
            log_security_event(
                SecurityEventType.LOGIN_FAILED,
                user_id=user.id if user else None,
                user_email=email,
                ip_address=ip_address,
                user_agent=user_agent,
                success=False,
            )
            raise AuthenticationError("Invalid credentials")

        await self.user_repo.record_successful_login(user.id)
        tokens = await self._issue_session(user, user_agent, ip_address)
        await self.session.commit()

        log_security_event(
            SecurityEventType.LOGIN_SUCCESS,
            user_id=user.id,
            user_email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return tokens

    async def refresh(
        self,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenResponse:
        """Refresh the access token with refresh token rotation.

        The presented refresh token is revoked and a new one is issued, so a
        replayed token is rejected.

        Raises:
            AuthenticationError: If the refresh token is invalid or expired
        """
        token_record = await self.token_repo.get_by_hash(hash_token(refresh_token))

        if token_record is None:
            raise AuthenticationError("Invalid refresh token")

        if _as_utc(token_record.expires_at) < datetime.now(timezone.utc):
            raise AuthenticationError("Refresh token expired")

        user = token_record.user
        if user is None or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        await self.token_repo.revoke_token(token_record.id)
        tokens = await self._issue_session(
            user,
            user_agent or token_record.user_agent,
            ip_address or token_record.ip_address,
        )
        await self.session.commit()

        log_security_event(
            SecurityEventType.TOKEN_REFRESH,
            user_id=user.id,
            user_email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return tokens

    async def sign_out(
        self,
        user: AdminUser,
        refresh_token: str | None = None,
        scope: str = "local",
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> int:
        """Sign out locally or globally.

        Returns:
            Number of refresh tokens revoked
        """
        if scope == "global":
            count = await self.token_repo.revoke_all_for_user(user.id)
            await self.session.commit()
            log_security_event(
                SecurityEventType.ALL_SESSIONS_REVOKED,
                user_id=user.id,
                user_email=user.email,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"revoked": count},
            )
            return count

        count = 0
        if refresh_token:
            token_record = await self.token_repo.get_by_hash(hash_token(refresh_token))
            # Tokens of other users are ignored
            if token_record is not None and token_record.user_id == user.id:
                await self.token_repo.revoke_token(token_record.id)
                await self.session.commit()
                count = 1

        log_security_event(
            SecurityEventType.LOGOUT,
            user_id=user.id,
            user_email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return count

    async def get_user_info(self, user_id: UUID) -> UserInfo:
        """Get user info by ID.

        Raises:
            UserNotFoundError: If the user no longer exists
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))

        return UserInfo(
            id=user.id,
            email=user.email,
            name=user.name,
            is_admin=user.is_admin,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
        )

    def _check_policy(self, new_password: str) -> None:
        is_valid, errors = self.password_service.validate_password_strength(new_password)
        if not is_valid:
            raise PasswordPolicyError(errors)

    async def change_password(
        self,
        user_id: UUID,
        current_password: str,
        new_password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Change the password, then revoke every session of the user.

        Raises:
            UserNotFoundError: If the user no longer exists
            AuthenticationError: If the current password is wrong
            PasswordPolicyError: If the new password is too weak
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))

        if not self.password_service.verify_password(current_password, user.password_hash):
            log_security_event(
                SecurityEventType.PASSWORD_CHANGED,
                user_id=user.id,
                user_email=user.email,
                ip_address=ip_address,
                user_agent=user_agent,
                success=False,
                details={"reason": "current_password_mismatch"},
            )
            raise AuthenticationError("Current password is incorrect")

        self._check_policy(new_password)

        await self.user_repo.update_password(user_id, self.password_service.hash_password(new_password))
        await self.token_repo.revoke_all_for_user(user_id)
        await self.session.commit()

        log_security_event(
            SecurityEventType.PASSWORD_CHANGED,
            user_id=user.id,
            user_email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def _reset_target(self, redirect_to: str | None) -> str:
        """Recovery landing page; only origins the front end is served from are accepted."""
        settings = get_settings()
        default = settings.frontend_url.rstrip("/") + RESET_PATH
        if not redirect_to:
            return default

        target = urlsplit(redirect_to)
        allowed = {settings.frontend_url.rstrip("/"), *settings.cors_origins_list}
        if f"{target.scheme}://{target.netloc}" not in allowed:
            logger.warning("Rejected password reset redirect to %s", target.netloc)
            return default
        return redirect_to

    async def send_password_reset_email(
        self,
        email: str,
        redirect_to: str | None = None,
        ip_address: str | None = None,
    ) -> None:
        """Send a recovery link when the account exists.

        Completes silently for unknown or inactive accounts so callers cannot
        probe which addresses are registered.
        """
        settings = get_settings()
        user = await self.user_repo.get_by_email(email)

        log_security_event(
            SecurityEventType.PASSWORD_RESET_REQUESTED,
            user_id=user.id if user else None,
            user_email=email,
            ip_address=ip_address,
            success=user is not None,
        )
        if user is None or not user.is_active:
            return

        await self.reset_repo.invalidate_for_user(user.id)
        raw_token, token_hash = create_one_time_token()
        await self.reset_repo.create_token(
            user_id=user.id,
            token_hash=token_hash,
            expires_at=datetime.now(timezone.utc)
            + timedelta(minutes=settings.password_reset_token_minutes),
        )
        await self.session.commit()

        target = self._reset_target(redirect_to)
        separator = "&" if "?" in target else "?"
        query = urlencode({"type": "recovery", "token_hash": raw_token, "email": user.email})
        reset_link = f"{target}{separator}{query}"

        sent = await self.email_service.send_password_reset_email(
            to_email=user.email,
            user_name=user.name,
            reset_link=reset_link,
            valid_minutes=settings.password_reset_token_minutes,
        )
        if not sent:
            logger.warning("Password reset e-mail could not be delivered")

    async def _consume_reset_token(self, token: str) -> AdminUserORM:
        token_record = await self.reset_repo.get_unused_by_hash(hash_token(token))
        if token_record is None:
            raise AuthenticationError("Invalid or expired token")
        if _as_utc(token_record.expires_at) < datetime.now(timezone.utc):
            raise AuthenticationError("Invalid or expired token")

        user = token_record.user
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid or expired token")

        await self.reset_repo.mark_used(token_record)
        return user

    async def verify_one_time_token(
        self,
        token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenResponse:
        """Exchange a recovery token for a session. The token is single use.

        Raises:
            AuthenticationError: If the token is unknown, used or expired
        """
        user = await self._consume_reset_token(token)
        tokens = await self._issue_session(user, user_agent, ip_address)
        await self.session.commit()

        log_security_event(
            SecurityEventType.PASSWORD_RESET_VERIFIED,
            user_id=user.id,
            user_email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return tokens

    async def complete_password_reset(
        self,
        token: str,
        new_password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Set a new password with a recovery token and sign out everywhere.

        Raises:
            AuthenticationError: If the token is unknown, used or expired
            PasswordPolicyError: If the new password is too weak
        """
        # Checked first so a weak password does not burn the token
        self._check_policy(new_password)

        user = await self._consume_reset_token(token)
        await self.user_repo.update_password(user.id, self.password_service.hash_password(new_password))
        await self.token_repo.revoke_all_for_user(user.id)
        await self.session.commit()

        log_security_event(
            SecurityEventType.PASSWORD_RESET_COMPLETED,
            user_id=user.id,
            user_email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )
