"""Attachment slot registry tests."""

import pytest

from audit_api.constants.slots import (
    MEGABYTE,
    AttachmentSlot,
    ContentKind,
    get_slot_definition,
    lookup_slot,
    ordered_slots,
)


class TestSlotRegistry:
    """Slot guardrails."""

    def test_slots_in_processing_order(self) -> None:
        assert ordered_slots() == [
            AttachmentSlot.INSPECTION_PLAN,
            AttachmentSlot.AUDIT_REPORT_PDF,
            AttachmentSlot.AUDIT_REPORT_WORD,
            AttachmentSlot.INVOICE,
            AttachmentSlot.TRAVEL_FEES,
        ]

    @pytest.mark.parametrize(
        ("slot", "kind", "max_mb"),
        [
            (AttachmentSlot.INSPECTION_PLAN, ContentKind.PDF, 25),
            (AttachmentSlot.AUDIT_REPORT_PDF, ContentKind.PDF, 25),
            (AttachmentSlot.AUDIT_REPORT_WORD, ContentKind.DOC, 20),
            (AttachmentSlot.INVOICE, ContentKind.PDF, 15),
            (AttachmentSlot.TRAVEL_FEES, ContentKind.ZIP, 50),
        ],
    )
    def test_kind_and_size_cap(self, slot: AttachmentSlot, kind: ContentKind, max_mb: int) -> None:
        definition = get_slot_definition(slot)
        assert definition.kind == kind
        assert definition.max_size_bytes == max_mb * MEGABYTE

    def test_word_slot_accepts_doc_and_docx(self) -> None:
        definition = get_slot_definition(AttachmentSlot.AUDIT_REPORT_WORD)
        assert definition.accepts("application/msword")
        assert definition.accepts(
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        )
        assert not definition.accepts("application/pdf")

    def test_zip_slot_accepts_both_zip_types(self) -> None:
        definition = get_slot_definition(AttachmentSlot.TRAVEL_FEES)
        assert definition.accepts("application/zip")
        assert definition.accepts("application/x-zip-compressed")
        assert not definition.accepts("application/octet-stream")

    def test_mime_match_is_exact(self) -> None:
        definition = get_slot_definition(AttachmentSlot.INVOICE)
        assert not definition.accepts("application/pdf; charset=binary")
        assert not definition.accepts("APPLICATION/PDF")

    def test_lookup_by_form_field_name(self) -> None:
        definition = lookup_slot("invoicePDF")
        assert definition is not None
        assert definition.slot == AttachmentSlot.INVOICE

    def test_lookup_unknown_name(self) -> None:
        assert lookup_slot("contractPDF") is None
        assert lookup_slot("") is None

    def test_slot_values_compare_to_strings(self) -> None:
        """Slots key dicts interchangeably with their form field names."""
        files = {"auditReportPDF": "x"}
        assert files.get(AttachmentSlot.AUDIT_REPORT_PDF) == "x"
