"""Attachment domain models."""

from dataclasses import dataclass

from audit_api.constants.slots import AttachmentSlot


@dataclass(frozen=True)
class IncomingFile:
    """A file submitted for one slot, fully read into memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class StoredAttachment:
    """Identity of a freshly written attachment."""

    file_id: int
    slot: AttachmentSlot
    path: str
