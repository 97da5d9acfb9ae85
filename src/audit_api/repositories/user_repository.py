"""Admin user and token repositories."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import selectinload

from audit_api.models.orm.admin_user import AdminUserORM
from audit_api.models.orm.password_reset_token import PasswordResetTokenORM
from audit_api.models.orm.refresh_token import RefreshTokenORM
from audit_api.repositories.base import BaseRepository


class UserRepository(BaseRepository[AdminUserORM]):
    """Repository for admin user operations."""

    model = AdminUserORM

    async def get_by_email(self, email: str) -> AdminUserORM | None:
        """Get admin user by email (case-insensitive).

        Args:
            email: User email address

        Returns:
            AdminUserORM or None if not found
        """
        result = await self.session.execute(
            select(AdminUserORM).where(AdminUserORM.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        password_hash: str,
        name: str | None = None,
        is_admin: bool = False,
    ) -> AdminUserORM:
        """Create a new user.

        Args:
            email: User email
            password_hash: Hashed password
            name: User name
            is_admin: Whether the user may write projects

        Returns:
            Created AdminUserORM
        """
        return await self.create(
            email=email.strip().lower(),
            password_hash=password_hash,
            name=name,
            is_admin=is_admin,
            password_changed_at=datetime.now(timezone.utc),
        )

    async def update_password(self, user_id: UUID, password_hash: str) -> AdminUserORM | None:
        """Update user password.

        Args:
            user_id: User UUID
            password_hash: New hashed password

        Returns:
            Updated AdminUserORM or None
        """
        return await self.update(
            user_id,
            password_hash=password_hash,
            password_changed_at=datetime.now(timezone.utc),
        )

    async def record_successful_login(self, user_id: UUID) -> AdminUserORM | None:
        """Stamp last_login_at."""
        return await self.update(user_id, last_login_at=datetime.now(timezone.utc))


class RefreshTokenRepository(BaseRepository[RefreshTokenORM]):
    """Repository for refresh token operations."""

    model = RefreshTokenORM

    async def get_by_hash(self, token_hash: str) -> RefreshTokenORM | None:
        """Get an unrevoked refresh token by hash.

        Args:
            token_hash: Token hash

        Returns:
            RefreshTokenORM or None
        """
        result = await self.session.execute(
            select(RefreshTokenORM)
            .options(selectinload(RefreshTokenORM.user))
            .where(RefreshTokenORM.token_hash == token_hash)
            .where(RefreshTokenORM.revoked_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def create_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> RefreshTokenORM:
        """Create a refresh token.

        Args:
            user_id: User UUID
            token_hash: Hashed token
            expires_at: Expiration datetime
            user_agent: User agent string
            ip_address: IP address

        Returns:
            Created RefreshTokenORM
        """
        return await self.create(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            user_agent=user_agent,
            ip_address=ip_address,
        )

    async def revoke_token(self, token_id: UUID) -> None:
        """Revoke a refresh token."""
        token = await self.get_by_id(token_id)
        if token:
            token.revoked_at = datetime.now(timezone.utc)
            await self.session.flush()

    async def revoke_all_for_user(self, user_id: UUID) -> int:
        """Revoke all refresh tokens for a user.

        Args:
            user_id: User UUID

        Returns:
            Number of tokens revoked
        """
        result = await self.session.execute(
            select(RefreshTokenORM)
            .where(RefreshTokenORM.user_id == user_id)
            .where(RefreshTokenORM.revoked_at.is_(None))
        )
        tokens = list(result.scalars().all())

        now = datetime.now(timezone.utc)
        for token in tokens:
            token.revoked_at = now

        await self.session.flush()
        return len(tokens)

    async def cleanup_expired(self) -> int:
        """Delete expired and revoked tokens.

        Returns:
            Number of tokens deleted
        """
        result = await self.session.execute(
            delete(RefreshTokenORM).where(
                or_(
                    RefreshTokenORM.expires_at < datetime.now(timezone.utc),
                    RefreshTokenORM.revoked_at.is_not(None),
                )
            )
        )
        await self.session.flush()
        return result.rowcount


class PasswordResetTokenRepository(BaseRepository[PasswordResetTokenORM]):
    """Repository for one-time password reset tokens."""

    model = PasswordResetTokenORM

    async def get_unused_by_hash(self, token_hash: str) -> PasswordResetTokenORM | None:
        """Get a reset token that has not been used yet, with its user."""
        result = await self.session.execute(
            select(PasswordResetTokenORM)
            .options(selectinload(PasswordResetTokenORM.user))
            .where(PasswordResetTokenORM.token_hash == token_hash)
            .where(PasswordResetTokenORM.used_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def create_token(
        self,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> PasswordResetTokenORM:
        """Store a new reset token hash."""
        return await self.create(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
        )

    async def mark_used(self, token: PasswordResetTokenORM) -> None:
        """Consume a reset token."""
        token.used_at = datetime.now(timezone.utc)
        await self.session.flush()

    async def invalidate_for_user(self, user_id: UUID) -> int:
        """Consume every outstanding reset token of a user.

        Returns:
            Number of tokens invalidated
        """
        result = await self.session.execute(
            select(PasswordResetTokenORM)
            .where(PasswordResetTokenORM.user_id == user_id)
            .where(PasswordResetTokenORM.used_at.is_(None))
        )
        tokens = list(result.scalars().all())

        now = datetime.now(timezone.utc)
        for token in tokens:
            token.used_at = now

        await self.session.flush()
        return len(tokens)

    async def cleanup_expired(self) -> int:
        """Delete expired and used tokens.

        Returns:
            Number of tokens deleted
        """
        result = await self.session.execute(
            delete(PasswordResetTokenORM).where(
                or_(
                    PasswordResetTokenORM.expires_at < datetime.now(timezone.utc),
                    PasswordResetTokenORM.used_at.is_not(None),
                )
            )
        )
        await self.session.flush()
        return result.rowcount
