"""Project attachment repository."""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.inspection import inspect

from audit_api.constants.slots import AttachmentSlot, ContentKind
from audit_api.models.orm.project_file import ProjectFileORM
from audit_api.repositories.base import BaseRepository


class ProjectFileRepository(BaseRepository[ProjectFileORM]):
    """Repository for attachment metadata rows."""

    model = ProjectFileORM

    async def create_file(
        self,
        project_id: int,
        slot: AttachmentSlot,
        kind: ContentKind,
        path: str,
        mime: str,
        size: int,
        uploaded_by: UUID | None = None,
    ) -> ProjectFileORM:
        """Insert an attachment row.

        Args:
            project_id: Owning project ID
            slot: Attachment slot
            kind: Content kind of the slot
            path: Blob storage path
            mime: Declared MIME type
            size: File size in bytes
            uploaded_by: Uploading user, if known

        Returns:
            Created ProjectFileORM
        """
        return await self.create(
            project_id=project_id,
            slot=slot.value,
            kind=kind.value,
            path=path,
            mime=mime,
            size=size,
            uploaded_by=uploaded_by,
        )

    async def get_for_project(self, project_id: int) -> list[ProjectFileORM]:
        """Get all attachment rows of a project in insertion order."""
        result = await self.session.execute(
            select(ProjectFileORM)
            .where(ProjectFileORM.project_id == project_id)
            .order_by(ProjectFileORM.id)
        )
        return list(result.scalars().all())

    async def get_for_projects(self, project_ids: Iterable[int] | None = None) -> list[ProjectFileORM]:
        """Get attachment rows of several projects, or of all projects.

        Args:
            project_ids: Project IDs to load; None loads every row

        Returns:
            Attachment rows in insertion order
        """
        query = select(ProjectFileORM).order_by(ProjectFileORM.id)
        if project_ids is not None:
            ids = list(project_ids)
            if not ids:
                return []
            query = query.where(ProjectFileORM.project_id.in_(ids))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_superseded(
        self,
        project_id: int,
        slot: AttachmentSlot,
        current_id: int,
    ) -> list[ProjectFileORM]:
        """Rows of a slot that were inserted before the current one.

        Args:
            project_id: Project ID
            slot: Attachment slot
            current_id: ID of the row that now holds the slot

        Returns:
            Older rows for the same (project, slot)
        """
        result = await self.session.execute(
            select(ProjectFileORM)
            .where(ProjectFileORM.project_id == project_id)
            .where(ProjectFileORM.slot == slot.value)
            .where(ProjectFileORM.id < current_id)
            .order_by(ProjectFileORM.id)
        )
        return list(result.scalars().all())

    async def delete_by_ids(self, file_ids: Iterable[int]) -> int:
        """Delete attachment rows by ID.

        Returns:
            Number of rows deleted
        """
        ids = list(file_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(ProjectFileORM).where(ProjectFileORM.id.in_(ids))
        )
        await self.session.flush()
        return result.rowcount

    async def delete_for_project(self, project_id: int) -> int:
        """Delete every attachment row of a project.

        Returns:
            Number of rows deleted
        """
        result = await self.session.execute(
            delete(ProjectFileORM).where(ProjectFileORM.project_id == project_id)
        )
        await self.session.flush()
        return result.rowcount

    @staticmethod
    def snapshot(file_orm: ProjectFileORM) -> dict[str, Any]:
        """Column values of a row, enough to re-insert it unchanged."""
        return {
            attr.key: getattr(file_orm, attr.key)
            for attr in inspect(ProjectFileORM).column_attrs
        }

    async def restore(self, snapshot: dict[str, Any]) -> ProjectFileORM:
        """Re-insert a previously deleted row with its original ID and path."""
        return await self.create(**snapshot)
