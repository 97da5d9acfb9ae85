"""Result types returned by the project write pipeline.

The pipeline never raises past its boundary: every call resolves to one of
``WriteSuccess``, ``ValidationFailure`` or ``PipelineFailure``.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID


class FailureKind(StrEnum):
    """Classification of a failed pipeline call."""

    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    INVALID_FILE_TYPE = "invalid_file_type"
    FILE_TOO_LARGE = "file_too_large"
    UPLOAD_FAILED = "upload_failed"
    METADATA_INSERT_FAILED = "metadata_insert_failed"
    PROJECT_WRITE_FAILED = "project_write_failed"


@dataclass(frozen=True)
class Caller:
    """Identity and write capability of whoever invokes the pipeline."""

    user_id: UUID | None
    is_admin: bool


@dataclass(frozen=True)
class WriteSuccess:
    project_id: int
    ok: bool = True


@dataclass(frozen=True)
class ValidationFailure:
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    error: str = "Validation failed"
    ok: bool = False


@dataclass(frozen=True)
class PipelineFailure:
    kind: FailureKind
    message: str
    ok: bool = False


WriteResult = WriteSuccess | ValidationFailure | PipelineFailure
DeleteResult = WriteSuccess | PipelineFailure
