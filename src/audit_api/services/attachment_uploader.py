"""Single-slot attachment writer."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.constants.slots import AttachmentSlot, SlotDefinition, get_slot_definition
from audit_api.exceptions import (
    BlobStoreError,
    FileTooLargeError,
    InvalidFileTypeError,
    MetadataInsertFailedError,
    UploadFailedError,
)
from audit_api.models.domain.attachment import IncomingFile, StoredAttachment
from audit_api.repositories.project_file_repository import ProjectFileRepository
from audit_api.storage.base import BlobStore
from audit_api.utils.filename import build_storage_path, sanitize_filename
from audit_api.utils.secure_logging import sanitize_exception_message

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def check_attachment(slot: AttachmentSlot, incoming: IncomingFile) -> SlotDefinition:
    """Apply a slot's guardrails to a file.

    Raises:
        InvalidFileTypeError: If the declared MIME type is not accepted by the slot
        FileTooLargeError: If the file exceeds the slot's size cap
    """
    definition = get_slot_definition(slot)
    mime = incoming.content_type or DEFAULT_CONTENT_TYPE
    if not definition.accepts(mime):
        raise InvalidFileTypeError(slot, mime)
    if incoming.size > definition.max_size_bytes:
        raise FileTooLargeError(slot, definition.max_mb)
    return definition


class AttachmentUploader:
    """Validates, stores and records one slot's file.

    The uploader does not clean up after itself: when the metadata insert
    fails, the blob it already stored is reported on the raised
    MetadataInsertFailedError and the caller removes it.
    """

    def __init__(self, session: AsyncSession, blob_store: BlobStore, path_root: str) -> None:
        self.session = session
        self.blob_store = blob_store
        self.path_root = path_root
        self.file_repo = ProjectFileRepository(session)

    async def upload(
        self,
        project_id: int,
        slot: AttachmentSlot,
        incoming: IncomingFile | None,
        uploaded_by: UUID | None = None,
    ) -> StoredAttachment | None:
        """Write one slot's file to the blob store and the database.

        Args:
            project_id: Owning project ID
            slot: Target slot
            incoming: Submitted file, or None when the slot was left empty
            uploaded_by: Uploading user

        Returns:
            The new attachment, or None when there was nothing to upload

        Raises:
            InvalidFileTypeError: Declared MIME type not accepted by the slot
            FileTooLargeError: File over the slot's size cap
            UploadFailedError: Blob store rejected the upload
            MetadataInsertFailedError: Row insert failed after the blob was stored
        """
        if incoming is None or incoming.size == 0:
            return None

        definition = check_attachment(slot, incoming)
        mime = incoming.content_type or DEFAULT_CONTENT_TYPE

        filename = sanitize_filename(incoming.filename or f"{slot.value}.bin")
        path = build_storage_path(self.path_root, str(project_id), definition.kind.value, filename)

        try:
            await self.blob_store.upload(path, incoming.content, mime)
        except BlobStoreError as e:
            raise UploadFailedError(slot, e.message) from e

        try:
            file_orm = await self.file_repo.create_file(
                project_id=project_id,
                slot=slot,
                kind=definition.kind,
                path=path,
                mime=mime,
                size=incoming.size,
                uploaded_by=uploaded_by,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            reason = sanitize_exception_message(getattr(e, "orig", None) or e)
            raise MetadataInsertFailedError(slot, reason, path=path) from e

        logger.debug("Stored %s for project %s at %s", slot.value, project_id, path)
        return StoredAttachment(file_id=file_orm.id, slot=slot, path=path)
