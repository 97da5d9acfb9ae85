"""Attachment slot registry.

A project carries at most one current file per slot. Each slot declares the
kind of document it holds, the MIME types accepted for it and its size cap.
Declaration order is the order in which the write pipeline processes slots.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

MEGABYTE: Final[int] = 1024 * 1024


class ContentKind(StrEnum):
    """Kind of document stored in a slot; also a blob path segment."""

    PDF = "pdf"
    DOC = "doc"
    ZIP = "zip"


class AttachmentSlot(StrEnum):
    """Named attachment slots. Values match the multipart form field names."""

    INSPECTION_PLAN = "inspectionPlanPDF"
    AUDIT_REPORT_PDF = "auditReportPDF"
    AUDIT_REPORT_WORD = "auditReportWord"
    INVOICE = "invoicePDF"
    TRAVEL_FEES = "travelFeesZIP"


@dataclass(frozen=True)
class SlotDefinition:
    """Server-side guardrails for one slot."""

    slot: AttachmentSlot
    kind: ContentKind
    accepted_mime_types: frozenset[str]
    max_mb: int

    @property
    def max_size_bytes(self) -> int:
        return self.max_mb * MEGABYTE

    def accepts(self, mime: str) -> bool:
        return mime in self.accepted_mime_types


PDF_MIME_TYPES: Final[frozenset[str]] = frozenset({"application/pdf"})
WORD_MIME_TYPES: Final[frozenset[str]] = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)
ZIP_MIME_TYPES: Final[frozenset[str]] = frozenset(
    {"application/zip", "application/x-zip-compressed"}
)

SLOT_DEFINITIONS: Final[dict[AttachmentSlot, SlotDefinition]] = {
    AttachmentSlot.INSPECTION_PLAN: SlotDefinition(
        AttachmentSlot.INSPECTION_PLAN, ContentKind.PDF, PDF_MIME_TYPES, 25
    ),
    AttachmentSlot.AUDIT_REPORT_PDF: SlotDefinition(
        AttachmentSlot.AUDIT_REPORT_PDF, ContentKind.PDF, PDF_MIME_TYPES, 25
    ),
    AttachmentSlot.AUDIT_REPORT_WORD: SlotDefinition(
        AttachmentSlot.AUDIT_REPORT_WORD, ContentKind.DOC, WORD_MIME_TYPES, 20
    ),
    AttachmentSlot.INVOICE: SlotDefinition(
        AttachmentSlot.INVOICE, ContentKind.PDF, PDF_MIME_TYPES, 15
    ),
    AttachmentSlot.TRAVEL_FEES: SlotDefinition(
        AttachmentSlot.TRAVEL_FEES, ContentKind.ZIP, ZIP_MIME_TYPES, 50
    ),
}


def get_slot_definition(slot: AttachmentSlot) -> SlotDefinition:
    """Get the guardrails for a slot."""
    return SLOT_DEFINITIONS[slot]


def lookup_slot(name: str) -> SlotDefinition | None:
    """Look up a slot by its form field name.

    Args:
        name: Slot name as submitted by a client

    Returns:
        SlotDefinition or None if the name is not a known slot
    """
    try:
        return SLOT_DEFINITIONS[AttachmentSlot(name)]
    except ValueError:
        return None


def ordered_slots() -> list[AttachmentSlot]:
    """Slots in declaration order."""
    return list(SLOT_DEFINITIONS)
