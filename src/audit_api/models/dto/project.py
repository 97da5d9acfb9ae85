"""Project DTOs."""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from audit_api.constants.validation import (
    ALLOWED_PROJECT_STATUSES,
    INSPECTION_DATE_PATTERN,
    MAX_NOTES_LENGTH,
    MAX_REFERENCE_LENGTH,
    MAX_TEXT_FIELD_LENGTH,
)
from audit_api.models.domain.project import ProjectView

_FIELD_LABELS = {
    "reference": "Reference",
    "customer": "Customer",
    "certification_type": "Certification type",
    "city": "City",
    "status": "Status",
}


class ProjectFieldsInput(BaseModel):
    """Raw project form fields, trimmed and checked."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    reference: str = Field(default="", max_length=MAX_REFERENCE_LENGTH)
    customer: str = Field(default="", max_length=MAX_TEXT_FIELD_LENGTH)
    certification_type: str = Field(default="", max_length=MAX_TEXT_FIELD_LENGTH)
    city: str = Field(default="", max_length=MAX_TEXT_FIELD_LENGTH)
    inspection_date: str = ""
    status: str = ""
    notes: str = Field(default="", max_length=MAX_NOTES_LENGTH)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_string(cls, value: Any) -> str:
        """Form values arrive untyped; missing values count as empty."""
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("reference", "customer", "certification_type", "city", "status")
    @classmethod
    def require_non_empty(cls, value: str, info) -> str:
        if not value:
            raise PydanticCustomError(
                "required", "{label} is required", {"label": _FIELD_LABELS[info.field_name]}
            )
        return value

    @field_validator("inspection_date")
    @classmethod
    def check_date_format(cls, value: str) -> str:
        if not value:
            return value
        if not INSPECTION_DATE_PATTERN.match(value):
            raise PydanticCustomError(
                "date_format", "Inspection date must use the YYYY-MM-DD format"
            )
        try:
            date.fromisoformat(value)
        except ValueError:
            raise PydanticCustomError(
                "date_invalid", "Inspection date is not a valid calendar date"
            ) from None
        return value

    @field_validator("status")
    @classmethod
    def check_status(cls, value: str) -> str:
        if value and value not in ALLOWED_PROJECT_STATUSES:
            raise PydanticCustomError(
                "status", "Status must be one of: {allowed}", {"allowed": ", ".join(ALLOWED_PROJECT_STATUSES)}
            )
        return value


class ProjectCreatedResponse(BaseModel):
    """Successful create response."""

    ok: bool = True
    project: dict[str, int]


class ProjectWriteOkResponse(BaseModel):
    """Successful update/delete response."""

    ok: bool = True


class ProjectWriteErrorResponse(BaseModel):
    """Failed pipeline response."""

    ok: bool = False
    error: str
    kind: str | None = None
    field_errors: dict[str, list[str]] | None = None


class ProjectListResponse(BaseModel):
    """Project table response."""

    items: list[ProjectView]
    total: int
    years: list[int]


class SignedUrlResponse(BaseModel):
    """Short-lived retrieval link for one attachment."""

    url: str
    expires_in: int
