"""Input validation utilities."""

from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from audit_api.constants.validation import (
    INSPECTION_DATE_PATTERN,
    MAX_SEARCH_LENGTH,
    MAX_STATUS_LENGTH,
)
from audit_api.exceptions import FieldValidationError
from audit_api.models.domain.project import ProjectFields
from audit_api.models.dto.project import ProjectFieldsInput


def derive_year(inspection_date: str | None, today: date | None = None) -> int:
    """Year a project is filed under.

    The four-digit prefix of a well-formed inspection date, otherwise the
    current calendar year.
    """
    if inspection_date and INSPECTION_DATE_PATTERN.match(inspection_date):
        return int(inspection_date[:4])
    return (today or date.today()).year


def validate_project_fields(raw: Mapping[str, Any], today: date | None = None) -> ProjectFields:
    """Check and normalize submitted project fields.

    Args:
        raw: Untyped key/value mapping, typically a submitted form
        today: Reference date for the derived year (defaults to today)

    Returns:
        Trimmed ProjectFields with the derived year

    Raises:
        FieldValidationError: With one or more messages per offending field
    """
    try:
        parsed = ProjectFieldsInput.model_validate(dict(raw))
    except PydanticValidationError as e:
        field_errors: dict[str, list[str]] = {}
        for error in e.errors():
            loc = error.get("loc") or ("form",)
            field_errors.setdefault(str(loc[0]), []).append(error["msg"])
        raise FieldValidationError(field_errors) from e

    inspection_date = parsed.inspection_date or None
    return ProjectFields(
        reference=parsed.reference,
        customer=parsed.customer,
        certification_type=parsed.certification_type,
        city=parsed.city,
        inspection_date=inspection_date,
        status=parsed.status,
        notes=parsed.notes,
        year=derive_year(inspection_date, today),
    )


def sanitize_search(search: str | None, max_length: int = MAX_SEARCH_LENGTH) -> str | None:
    """Sanitize search input.

    Args:
        search: Raw search string
        max_length: Maximum allowed length

    Returns:
        Sanitized search string or None
    """
    if search is None:
        return None

    search = search[:max_length]

    # Remove any SQL-like patterns (SQLAlchemy parameterizes these anyway)
    search = search.replace(";", "").replace("--", "")

    return search.strip() or None


def validate_sort_by(sort_by: str | None, allowed_columns: frozenset[str], default: str) -> str:
    """Validate sort column against whitelist.

    Args:
        sort_by: Raw sort column name
        allowed_columns: Set of allowed column names
        default: Default column if invalid

    Returns:
        Validated sort column name
    """
    if sort_by and sort_by in allowed_columns:
        return sort_by
    return default


def validate_sort_direction(sort_dir: str | None, default: str = "desc") -> str:
    """Normalize a sort direction to asc or desc."""
    if sort_dir and sort_dir.lower() in ("asc", "desc"):
        return sort_dir.lower()
    return default


def sanitize_status(status: str | None, allowed_values: tuple[str, ...]) -> str | None:
    """Sanitize a status filter against the known project statuses.

    Args:
        status: Raw status string
        allowed_values: Allowed status values

    Returns:
        The matching status or None if it is empty or unknown
    """
    if status is None:
        return None

    status = status[:MAX_STATUS_LENGTH].strip()
    if not status or status not in allowed_values:
        return None
    return status


def escape_like_wildcards(value: str) -> str:
    """Escape SQL LIKE wildcards so they match literally.

    Example:
        >>> escape_like_wildcards("test%value")
        'test\\\\%value'
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
