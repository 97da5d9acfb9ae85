"""Project field validation tests."""

from datetime import date

import pytest

from audit_api.exceptions import FieldValidationError
from audit_api.utils.validation import derive_year, validate_project_fields
from tests.conftest import VALID_FIELDS

TODAY = date(2025, 3, 14)


class TestValidateProjectFields:
    """Schema rules for submitted project fields."""

    def test_valid_fields_are_trimmed(self) -> None:
        raw = {key: f"  {value}  " for key, value in VALID_FIELDS.items()}
        fields = validate_project_fields(raw, today=TODAY)

        assert fields.reference == "AUD-2024-001"
        assert fields.city == "Lyon"
        assert fields.notes == "Second site visit"
        assert fields.inspection_date == "2024-05-17"

    def test_year_from_inspection_date(self) -> None:
        fields = validate_project_fields(VALID_FIELDS, today=TODAY)
        assert fields.year == 2024

    def test_year_defaults_to_current_year(self) -> None:
        raw = {**VALID_FIELDS, "inspection_date": ""}
        fields = validate_project_fields(raw, today=TODAY)

        assert fields.inspection_date is None
        assert fields.year == 2025

    def test_missing_required_fields(self) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate_project_fields({"notes": "only notes"}, today=TODAY)

        errors = exc_info.value.field_errors
        assert set(errors) == {"reference", "customer", "certification_type", "city", "status"}
        assert errors["reference"] == ["Reference is required"]

    def test_whitespace_only_counts_as_missing(self) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate_project_fields({**VALID_FIELDS, "customer": "   "}, today=TODAY)
        assert "customer" in exc_info.value.field_errors

    @pytest.mark.parametrize("value", ["17/05/2024", "2024-5-17", "20240517", "2024-05-17T10:00"])
    def test_inspection_date_format(self, value: str) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate_project_fields({**VALID_FIELDS, "inspection_date": value}, today=TODAY)
        assert exc_info.value.field_errors["inspection_date"] == [
            "Inspection date must use the YYYY-MM-DD format"
        ]

    @pytest.mark.parametrize("value", ["2025-13-40", "2024-02-30", "2023-02-29", "2024-00-10"])
    def test_calendar_invalid_date(self, value: str) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate_project_fields({**VALID_FIELDS, "inspection_date": value}, today=TODAY)
        assert exc_info.value.field_errors == {
            "inspection_date": ["Inspection date is not a valid calendar date"]
        }

    def test_leap_day_is_valid(self) -> None:
        fields = validate_project_fields({**VALID_FIELDS, "inspection_date": "2024-02-29"}, today=TODAY)
        assert fields.year == 2024

    def test_unknown_status(self) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate_project_fields({**VALID_FIELDS, "status": "Archived"}, today=TODAY)
        assert "status" in exc_info.value.field_errors

    def test_too_long_reference(self) -> None:
        with pytest.raises(FieldValidationError) as exc_info:
            validate_project_fields({**VALID_FIELDS, "reference": "R" * 101}, today=TODAY)
        assert "reference" in exc_info.value.field_errors

    def test_non_string_values_are_coerced(self) -> None:
        fields = validate_project_fields({**VALID_FIELDS, "reference": 1234, "notes": None}, today=TODAY)
        assert fields.reference == "1234"
        assert fields.notes == ""

    def test_unknown_keys_ignored(self) -> None:
        fields = validate_project_fields({**VALID_FIELDS, "id": "99", "year": "1999"}, today=TODAY)
        assert fields.year == 2024


class TestDeriveYear:
    """Year derivation."""

    def test_from_date(self) -> None:
        assert derive_year("2019-12-31", TODAY) == 2019

    def test_fallbacks(self) -> None:
        assert derive_year(None, TODAY) == 2025
        assert derive_year("", TODAY) == 2025
        assert derive_year("next week", TODAY) == 2025
