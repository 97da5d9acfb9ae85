"""Centralized validation constants for the audit API.

This module provides a single source of truth for all validation whitelists,
default values, and limits used across routers and services.
"""

import re
from typing import Final

# =============================================================================
# Project Constants
# =============================================================================

ALLOWED_PROJECT_STATUSES: Final[tuple[str, ...]] = (
    "To schedule",
    "Planned",
    "In progress",
    "Report writing",
    "Completed",
    "Cancelled",
)

DEFAULT_PROJECT_STATUS: Final[str] = "To schedule"

# Strict YYYY-MM-DD shape; calendar validity is not checked here
INSPECTION_DATE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}\Z")

REQUIRED_PROJECT_FIELDS: Final[tuple[str, ...]] = (
    "reference",
    "customer",
    "certification_type",
    "city",
    "status",
)

ALLOWED_PROJECT_SORT_COLUMNS: Final[frozenset[str]] = frozenset(
    {
        "reference",
        "customer",
        "certification_type",
        "city",
        "inspection_date",
        "status",
        "year",
        "last_updated",
    }
)

DEFAULT_PROJECT_SORT_COLUMN: Final[str] = "inspection_date"

# =============================================================================
# Password Constants
# =============================================================================

MIN_PASSWORD_LENGTH: Final[int] = 8
MAX_PASSWORD_LENGTH: Final[int] = 128

# =============================================================================
# Text Length Constants
# =============================================================================

MAX_SEARCH_LENGTH: Final[int] = 200
MAX_STATUS_LENGTH: Final[int] = 50
MAX_REFERENCE_LENGTH: Final[int] = 100
MAX_TEXT_FIELD_LENGTH: Final[int] = 255
MAX_NOTES_LENGTH: Final[int] = 5000
