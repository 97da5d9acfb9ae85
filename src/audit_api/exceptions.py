"""Domain-specific exceptions for the audit API.

These exceptions provide a clean separation between service-layer errors
and HTTP responses, avoiding string matching in routers.
"""

from typing import Any

from audit_api.constants.slots import AttachmentSlot
from audit_api.models.domain.pipeline import FailureKind


class AuditAPIError(Exception):
    """Base exception for all audit API errors."""

    def __init__(self, message: str = "An error occurred", details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class NotFoundError(AuditAPIError):
    """Base class for resource not found errors."""

    pass


class ProjectNotFoundError(NotFoundError):
    """Raised when a project cannot be found."""

    def __init__(self, project_id: int | None = None) -> None:
        details = {"project_id": project_id} if project_id is not None else {}
        super().__init__("Project not found", details)


class ProjectFileNotFoundError(NotFoundError):
    """Raised when an attachment row cannot be found."""

    def __init__(self, file_id: int | None = None) -> None:
        details = {"file_id": file_id} if file_id is not None else {}
        super().__init__("File not found", details)


class UserNotFoundError(NotFoundError):
    """Raised when a user cannot be found."""

    def __init__(self, user_id: str | None = None) -> None:
        details = {"user_id": str(user_id)} if user_id else {}
        super().__init__("User not found", details)


# =============================================================================
# Authentication Errors (401)
# =============================================================================


class AuthenticationError(AuditAPIError):
    """Raised when credentials or tokens are rejected."""

    pass


# =============================================================================
# Validation Errors (400 / 422)
# =============================================================================


class ValidationError(AuditAPIError):
    """Base class for validation errors."""

    pass


class FieldValidationError(ValidationError):
    """Raised when submitted project fields fail schema rules."""

    def __init__(self, field_errors: dict[str, list[str]]) -> None:
        self.field_errors = field_errors
        super().__init__("Validation failed", {"field_errors": field_errors})


class PasswordPolicyError(ValidationError):
    """Raised when a new password does not meet the password policy."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(errors[0] if errors else "Password does not meet requirements")


# =============================================================================
# Attachment Errors
# =============================================================================


class AttachmentError(AuditAPIError):
    """Base class for failures while writing one attachment slot."""

    kind: FailureKind = FailureKind.UPLOAD_FAILED

    def __init__(self, slot: AttachmentSlot, message: str) -> None:
        self.slot = slot
        super().__init__(message, {"slot": slot.value})


class InvalidFileTypeError(AttachmentError):
    """Raised when a file's declared MIME type is not accepted by its slot."""

    kind = FailureKind.INVALID_FILE_TYPE

    def __init__(self, slot: AttachmentSlot, mime: str) -> None:
        super().__init__(slot, f"Invalid file type for {slot.value}")
        self.details["mime"] = mime


class FileTooLargeError(AttachmentError):
    """Raised when a file exceeds its slot's maximum size."""

    kind = FailureKind.FILE_TOO_LARGE

    def __init__(self, slot: AttachmentSlot, max_mb: int) -> None:
        super().__init__(slot, f"File too large for {slot.value} (max {max_mb} MB)")


class UploadFailedError(AttachmentError):
    """Raised when the blob store rejects an upload."""

    kind = FailureKind.UPLOAD_FAILED

    def __init__(self, slot: AttachmentSlot, reason: str) -> None:
        super().__init__(slot, f"Upload failed for {slot.value}: {reason}")


class MetadataInsertFailedError(AttachmentError):
    """Raised when the attachment metadata row cannot be inserted."""

    kind = FailureKind.METADATA_INSERT_FAILED

    def __init__(self, slot: AttachmentSlot, reason: str, path: str | None = None) -> None:
        super().__init__(slot, f"Metadata insert failed for {slot.value}: {reason}")
        # Blob uploaded before the insert failed; the caller removes it
        self.path = path


# =============================================================================
# Storage Errors
# =============================================================================


class ProjectWriteError(AuditAPIError):
    """Raised when the project row itself cannot be written."""

    pass


class BlobStoreError(AuditAPIError):
    """Raised by blob store backends when a remote call fails."""

    pass


class SignedUrlError(AuditAPIError):
    """Raised when a signed retrieval URL cannot be minted."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Signed URL error: {reason}")


class EmailDeliveryError(AuditAPIError):
    """Raised when an e-mail cannot be handed to the SMTP server."""

    pass
