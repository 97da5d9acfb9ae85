"""SQLAlchemy ORM models package."""

from audit_api.models.orm.base import Base
from audit_api.models.orm.admin_user import AdminUserORM
from audit_api.models.orm.password_reset_token import PasswordResetTokenORM
from audit_api.models.orm.project import ProjectORM
from audit_api.models.orm.project_file import ProjectFileORM
from audit_api.models.orm.refresh_token import RefreshTokenORM

__all__ = [
    "Base",
    "AdminUserORM",
    "PasswordResetTokenORM",
    "ProjectORM",
    "ProjectFileORM",
    "RefreshTokenORM",
]
