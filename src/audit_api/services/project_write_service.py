"""Project write pipeline.

Creates, updates and deletes projects together with their attachments across
the database and the blob store. Each step commits on its own; a failure
after the first durable effect unwinds the call's compensation log, so a
failed create leaves nothing behind and a failed update leaves the previous
attachments in place.

Every entry point resolves to a typed result and never raises storage
errors to its caller.
"""

import logging
from collections.abc import Mapping
from functools import partial
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.config import get_settings
from audit_api.constants.slots import AttachmentSlot, ordered_slots
from audit_api.exceptions import (
    AttachmentError,
    FieldValidationError,
    MetadataInsertFailedError,
)
from audit_api.models.domain.attachment import IncomingFile
from audit_api.models.domain.pipeline import (
    Caller,
    DeleteResult,
    FailureKind,
    PipelineFailure,
    ValidationFailure,
    WriteResult,
    WriteSuccess,
)
from audit_api.repositories.project_file_repository import ProjectFileRepository
from audit_api.repositories.project_repository import ProjectRepository
from audit_api.services.attachment_uploader import AttachmentUploader
from audit_api.services.compensation import CompensationLog
from audit_api.storage.base import BlobStore
from audit_api.utils.secure_logging import log_error, log_warning, sanitize_exception_message
from audit_api.utils.security_events import SecurityEventType, log_security_event
from audit_api.utils.validation import validate_project_fields

logger = logging.getLogger(__name__)

FilesBySlot = Mapping[AttachmentSlot | str, IncomingFile | None]


def _db_reason(error: Exception) -> str:
    return sanitize_exception_message(getattr(error, "orig", None) or error)


class ProjectWriteService:
    """Service behind the create, update and delete project operations."""

    def __init__(
        self,
        session: AsyncSession,
        blob_store: BlobStore,
        path_root: str | None = None,
    ) -> None:
        self.session = session
        self.blob_store = blob_store
        self.project_repo = ProjectRepository(session)
        self.file_repo = ProjectFileRepository(session)
        self.uploader = AttachmentUploader(
            session,
            blob_store,
            path_root if path_root is not None else get_settings().storage_path_root,
        )

    async def create_project(
        self,
        raw_fields: Mapping[str, Any],
        files: FilesBySlot,
        caller: Caller,
    ) -> WriteResult:
        """Create a project and all submitted attachments, or nothing.

        Args:
            raw_fields: Untyped form fields
            files: Submitted files keyed by slot; missing or empty slots are skipped
            caller: Identity and capability of the requester

        Returns:
            WriteSuccess with the new project ID, ValidationFailure or PipelineFailure
        """
        if not caller.is_admin:
            return self._access_denied(caller, "create")

        try:
            fields = validate_project_fields(raw_fields)
        except FieldValidationError as e:
            return ValidationFailure(field_errors=e.field_errors)

        try:
            project = await self.project_repo.create_project(fields)
            await self.session.commit()
        except (SQLAlchemyError, ValueError) as e:
            await self.session.rollback()
            log_warning(logger, "Project insert failed", e)
            return PipelineFailure(FailureKind.PROJECT_WRITE_FAILED, _db_reason(e))

        project_id = project.id
        log = CompensationLog(f"create of project {project_id}")
        log.register(f"delete project {project_id}", partial(self._delete_project_row, project_id))

        try:
            failure = await self._write_slots(project_id, files, caller, log)
        except Exception as e:
            failure = await self._unexpected_failure(project_id, "create", e)

        if failure is not None:
            await self._rollback(log, failure)
            return failure

        log.clear()
        log_security_event(
            SecurityEventType.PROJECT_CREATED,
            user_id=caller.user_id,
            details={"project_id": project_id},
        )
        return WriteSuccess(project_id=project_id)

    async def update_project(
        self,
        project_id: int,
        raw_fields: Mapping[str, Any],
        files: FilesBySlot,
        caller: Caller,
    ) -> WriteResult:
        """Update a project's fields, then replace the submitted attachments.

        The field update is committed on its own and is kept even when a file
        step fails afterwards; file changes are all-or-nothing. A slot's
        previous attachment is superseded right after its replacement is
        stored, and the superseded blobs are removed once every slot succeeded.

        Args:
            project_id: Project to update
            raw_fields: Untyped form fields
            files: Replacement files keyed by slot; missing or empty slots are left alone
            caller: Identity and capability of the requester

        Returns:
            WriteSuccess, ValidationFailure or PipelineFailure
        """
        if not caller.is_admin:
            return self._access_denied(caller, "update")

        try:
            fields = validate_project_fields(raw_fields)
        except FieldValidationError as e:
            return ValidationFailure(field_errors=e.field_errors)

        try:
            project = await self.project_repo.update_fields(project_id, fields)
            await self.session.commit()
        except (SQLAlchemyError, ValueError) as e:
            await self.session.rollback()
            log_warning(logger, "Project update failed", e)
            return PipelineFailure(FailureKind.PROJECT_WRITE_FAILED, _db_reason(e))

        if project is None:
            return PipelineFailure(FailureKind.NOT_FOUND, "Project not found")

        log = CompensationLog(f"update of project {project_id}")
        superseded_paths: list[str] = []

        try:
            failure = await self._write_slots(project_id, files, caller, log, superseded_paths)
        except Exception as e:
            failure = await self._unexpected_failure(project_id, "update", e)

        if failure is not None:
            await self._rollback(log, failure)
            return failure

        log.clear()
        if superseded_paths:
            await self.blob_store.remove(superseded_paths)

        log_security_event(
            SecurityEventType.PROJECT_UPDATED,
            user_id=caller.user_id,
            details={"project_id": project_id, "replaced": len(superseded_paths)},
        )
        return WriteSuccess(project_id=project_id)

    async def delete_project(self, project_id: int, caller: Caller) -> DeleteResult:
        """Delete a project, its attachment rows and their blobs.

        Blob removal is best effort and never blocks the row deletions: the
        project row decides whether the project exists. A failure deleting
        the project row after its files are gone is reported, not retried.

        Args:
            project_id: Project to delete
            caller: Identity and capability of the requester

        Returns:
            WriteSuccess or PipelineFailure
        """
        if not caller.is_admin:
            return self._access_denied(caller, "delete")

        try:
            project = await self.project_repo.get_by_id(project_id)
            files = await self.file_repo.get_for_project(project_id) if project else []
        except SQLAlchemyError as e:
            await self.session.rollback()
            log_warning(logger, "Failed to load project for deletion", e)
            return PipelineFailure(FailureKind.PROJECT_WRITE_FAILED, _db_reason(e))

        if project is None:
            return PipelineFailure(FailureKind.NOT_FOUND, "Project not found")

        paths = [f.path for f in files]
        if paths:
            await self.blob_store.remove(paths)

        try:
            await self.file_repo.delete_for_project(project_id)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log_error(logger, f"Attachment rows of project {project_id} could not be deleted", e)
            return PipelineFailure(FailureKind.PROJECT_WRITE_FAILED, _db_reason(e))

        try:
            await self.project_repo.delete_project(project_id)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log_error(
                logger,
                f"Project {project_id} row could not be deleted after its files were removed",
                e,
            )
            return PipelineFailure(FailureKind.PROJECT_WRITE_FAILED, _db_reason(e))

        log_security_event(
            SecurityEventType.PROJECT_DELETED,
            user_id=caller.user_id,
            details={"project_id": project_id, "files": len(paths)},
        )
        return WriteSuccess(project_id=project_id)

    async def _write_slots(
        self,
        project_id: int,
        files: FilesBySlot,
        caller: Caller,
        log: CompensationLog,
        superseded_paths: list[str] | None = None,
    ) -> PipelineFailure | None:
        """Upload every submitted slot in registry order.

        When ``superseded_paths`` is given, older rows of each replaced slot are
        deleted (with a restoring inverse) and their paths collected for
        removal after the whole call succeeds.

        Returns:
            The first failure, or None when every slot succeeded
        """
        for slot in ordered_slots():
            try:
                stored = await self.uploader.upload(
                    project_id, slot, files.get(slot), uploaded_by=caller.user_id
                )
            except MetadataInsertFailedError as e:
                if e.path:
                    log.register(f"remove blob {e.path}", partial(self.blob_store.remove, [e.path]))
                return PipelineFailure(e.kind, e.message)
            except AttachmentError as e:
                return PipelineFailure(e.kind, e.message)

            if stored is None:
                continue

            log.register(f"remove blob {stored.path}", partial(self.blob_store.remove, [stored.path]))
            log.register(f"delete file row {stored.file_id}", partial(self._delete_file_rows, [stored.file_id]))

            if superseded_paths is not None:
                await self._supersede(project_id, slot, stored.file_id, log, superseded_paths)

        return None

    async def _supersede(
        self,
        project_id: int,
        slot: AttachmentSlot,
        current_id: int,
        log: CompensationLog,
        superseded_paths: list[str],
    ) -> None:
        """Delete the rows a new attachment replaces.

        A failure here leaves the older rows in place; the read model keeps the
        first row per slot and reports the duplicate.
        """
        try:
            older = await self.file_repo.get_superseded(project_id, slot, current_id)
            if not older:
                return
            snapshots = [self.file_repo.snapshot(row) for row in older]
            await self.file_repo.delete_by_ids([row.id for row in older])
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log_warning(logger, f"Could not supersede previous {slot.value} of project {project_id}", e)
            return

        log.register(
            f"restore {len(snapshots)} superseded {slot.value} row(s)",
            partial(self._restore_file_rows, snapshots),
        )
        superseded_paths.extend(s["path"] for s in snapshots)

    async def _unexpected_failure(self, project_id: int, action: str, error: Exception) -> PipelineFailure:
        """Turn an unclassified error in a file step into a failure to roll back."""
        log_error(logger, f"Unexpected error during {action} of project {project_id}", error)
        await self.session.rollback()
        return PipelineFailure(FailureKind.PROJECT_WRITE_FAILED, sanitize_exception_message(error))

    async def _rollback(self, log: CompensationLog, failure: PipelineFailure) -> None:
        failed = await log.unwind()
        if failed:
            logger.error(
                "Rollback after %s left %d compensation(s) undone: %s",
                failure.kind,
                failed,
                failure.message,
            )

    def _access_denied(self, caller: Caller, action: str) -> PipelineFailure:
        log_security_event(
            SecurityEventType.ACCESS_DENIED,
            user_id=caller.user_id,
            details={"action": f"project.{action}"},
            success=False,
        )
        return PipelineFailure(FailureKind.ACCESS_DENIED, "Admin privileges required")

    async def _delete_project_row(self, project_id: int) -> None:
        try:
            await self.project_repo.delete_project(project_id)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

    async def _delete_file_rows(self, file_ids: list[int]) -> None:
        try:
            await self.file_repo.delete_by_ids(file_ids)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

    async def _restore_file_rows(self, snapshots: list[dict[str, Any]]) -> None:
        try:
            for snapshot in snapshots:
                await self.file_repo.restore(snapshot)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
