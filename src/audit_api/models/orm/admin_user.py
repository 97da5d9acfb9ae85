"""Admin user ORM model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.models.orm.base import Base, TimestampMixin, UUIDMixin


class AdminUserORM(Base, UUIDMixin, TimestampMixin):
    """Back-office user with local password authentication."""

    __tablename__ = "admin_users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Only admins may create, update or delete projects
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    refresh_tokens: Mapped[list["RefreshTokenORM"]] = relationship(
        "RefreshTokenORM",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    reset_tokens: Mapped[list["PasswordResetTokenORM"]] = relationship(
        "PasswordResetTokenORM",
        back_populates="user",
        cascade="all, delete-orphan",
    )


from audit_api.models.orm.password_reset_token import PasswordResetTokenORM  # noqa: E402, F401
from audit_api.models.orm.refresh_token import RefreshTokenORM  # noqa: E402, F401
