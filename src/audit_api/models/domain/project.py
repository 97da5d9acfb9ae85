"""Project domain models."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from audit_api.constants.slots import AttachmentSlot, ContentKind


class ProjectFields(BaseModel):
    """Validated, trimmed project metadata ready to be written."""

    model_config = ConfigDict(frozen=True)

    reference: str
    customer: str
    certification_type: str
    city: str
    inspection_date: str | None = None
    status: str
    notes: str = ""
    year: int


class FileLink(BaseModel):
    """Current attachment of one slot, as shown in the project table."""

    id: int
    slot: AttachmentSlot
    kind: ContentKind
    path: str
    label: str
    mime: str
    size: int
    uploaded_by: UUID | None = None
    uploaded_at: datetime | None = None


class ProjectView(BaseModel):
    """Denormalized project row with its slot to file map."""

    id: int
    reference: str
    customer: str
    certification_type: str
    city: str
    inspection_date: date | None = None
    status: str
    notes: str = ""
    year: int
    last_updated: datetime | None = None
    files: dict[AttachmentSlot, FileLink] = {}
