"""Security package."""

from audit_api.security.auth import (
    create_access_token,
    get_current_user,
)
from audit_api.security.password import PasswordService, get_password_service

__all__ = [
    "PasswordService",
    "create_access_token",
    "get_current_user",
    "get_password_service",
]
