"""Data Transfer Objects package."""

from audit_api.models.dto.auth import TokenResponse, UserInfo
from audit_api.models.dto.project import (
    ProjectCreatedResponse,
    ProjectListResponse,
    ProjectWriteErrorResponse,
    ProjectWriteOkResponse,
    SignedUrlResponse,
)

__all__ = [
    "TokenResponse",
    "UserInfo",
    "ProjectCreatedResponse",
    "ProjectListResponse",
    "ProjectWriteErrorResponse",
    "ProjectWriteOkResponse",
    "SignedUrlResponse",
]
