"""Repositories package."""

from audit_api.repositories.base import BaseRepository
from audit_api.repositories.project_file_repository import ProjectFileRepository
from audit_api.repositories.project_repository import ProjectRepository
from audit_api.repositories.user_repository import (
    PasswordResetTokenRepository,
    RefreshTokenRepository,
    UserRepository,
)

__all__ = [
    "BaseRepository",
    "PasswordResetTokenRepository",
    "ProjectFileRepository",
    "ProjectRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
