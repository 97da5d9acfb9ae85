"""Domain models package."""

from audit_api.models.domain.admin_user import AdminUser
from audit_api.models.domain.attachment import IncomingFile, StoredAttachment
from audit_api.models.domain.pipeline import (
    Caller,
    FailureKind,
    PipelineFailure,
    ValidationFailure,
    WriteSuccess,
)
from audit_api.models.domain.project import FileLink, ProjectFields, ProjectView

__all__ = [
    "AdminUser",
    "Caller",
    "FailureKind",
    "FileLink",
    "IncomingFile",
    "PipelineFailure",
    "ProjectFields",
    "ProjectView",
    "StoredAttachment",
    "ValidationFailure",
    "WriteSuccess",
]
