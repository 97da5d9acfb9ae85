"""Project read model."""

import logging
from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.constants.slots import AttachmentSlot, ContentKind, lookup_slot
from audit_api.constants.validation import (
    ALLOWED_PROJECT_SORT_COLUMNS,
    ALLOWED_PROJECT_STATUSES,
    DEFAULT_PROJECT_SORT_COLUMN,
)
from audit_api.exceptions import ProjectFileNotFoundError, ProjectNotFoundError
from audit_api.models.domain.project import FileLink, ProjectView
from audit_api.models.orm.project import ProjectORM
from audit_api.models.orm.project_file import ProjectFileORM
from audit_api.repositories.project_file_repository import ProjectFileRepository
from audit_api.repositories.project_repository import ProjectRepository
from audit_api.utils.filename import basename
from audit_api.utils.secure_logging import log_error
from audit_api.utils.validation import (
    sanitize_search,
    sanitize_status,
    validate_sort_by,
    validate_sort_direction,
)

logger = logging.getLogger(__name__)


def classify_file(file_orm: ProjectFileORM) -> AttachmentSlot | None:
    """Slot a file row belongs to.

    Rows carry their slot name; rows without a recognised one are classified
    from their kind, MIME type and path keywords.
    """
    definition = lookup_slot(file_orm.slot or "")
    if definition is not None:
        return definition.slot

    kind = (file_orm.kind or "").lower()
    mime = (file_orm.mime or "").lower()
    path = (file_orm.path or "").lower()

    def has(token: str) -> bool:
        return token in kind or token in path

    is_pdf = "pdf" in mime or has("pdf")
    if is_pdf and (has("inspection") or has("plan")):
        return AttachmentSlot.INSPECTION_PLAN
    if "pdf" in mime and (has("audit") or has("report")):
        return AttachmentSlot.AUDIT_REPORT_PDF
    is_word = any(t in mime for t in ("word", "msword", "doc")) or path.endswith((".doc", ".docx"))
    if is_word and (has("audit") or has("report")):
        return AttachmentSlot.AUDIT_REPORT_WORD
    if is_pdf and (has("invoice") or has("facture")):
        return AttachmentSlot.INVOICE
    is_zip = "zip" in mime or path.endswith(".zip")
    if is_zip and any(has(t) for t in ("travel", "fees", "expenses", "frais", "deplacement")):
        return AttachmentSlot.TRAVEL_FEES
    return None


def _file_link(file_orm: ProjectFileORM, slot: AttachmentSlot) -> FileLink:
    try:
        kind = ContentKind(file_orm.kind)
    except ValueError:
        kind = lookup_slot(slot.value).kind
    return FileLink(
        id=file_orm.id,
        slot=slot,
        kind=kind,
        path=file_orm.path,
        label=basename(file_orm.path) or file_orm.kind or "file",
        mime=file_orm.mime,
        size=file_orm.size,
        uploaded_by=file_orm.uploaded_by,
        uploaded_at=file_orm.uploaded_at,
    )


def group_files(files: Iterable[ProjectFileORM]) -> dict[int, dict[AttachmentSlot, FileLink]]:
    """Build each project's slot map, keeping the first row seen per slot.

    A second row for an occupied slot breaks the one-current-file rule; it is
    logged and ignored.
    """
    grouped: dict[int, dict[AttachmentSlot, FileLink]] = defaultdict(dict)
    for file_orm in files:
        slot = classify_file(file_orm)
        if slot is None:
            logger.warning("File %s of project %s matches no slot", file_orm.id, file_orm.project_id)
            continue
        slots = grouped[file_orm.project_id]
        if slot in slots:
            logger.warning(
                "Duplicate %s attachment for project %s: keeping file %s, ignoring file %s",
                slot.value,
                file_orm.project_id,
                slots[slot].id,
                file_orm.id,
            )
            continue
        slots[slot] = _file_link(file_orm, slot)
    return grouped


def to_view(project: ProjectORM, files: dict[AttachmentSlot, FileLink] | None = None) -> ProjectView:
    return ProjectView(
        id=project.id,
        reference=project.reference,
        customer=project.customer,
        certification_type=project.certification_type,
        city=project.city,
        inspection_date=project.inspection_date,
        status=project.status,
        notes=project.notes or "",
        year=project.year,
        last_updated=project.last_updated,
        files=files or {},
    )


class ProjectReadService:
    """Loads projects with their current attachments for display."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.project_repo = ProjectRepository(session)
        self.file_repo = ProjectFileRepository(session)

    async def list_projects(
        self,
        year: int | None = None,
        status: str | None = None,
        search: str | None = None,
        sort_by: str | None = None,
        sort_dir: str = "desc",
    ) -> list[ProjectView]:
        """Project table rows, newest inspection first by default.

        Args:
            year: Only projects filed under this year
            status: Only projects in this status (unknown values are ignored)
            search: Free-text match on reference, customer or city
            sort_by: Whitelisted column name
            sort_dir: asc or desc

        Returns:
            One denormalized view per project
        """
        projects = await self.project_repo.list_projects(
            year=year,
            status=sanitize_status(status, ALLOWED_PROJECT_STATUSES),
            search=sanitize_search(search),
            sort_by=validate_sort_by(sort_by, ALLOWED_PROJECT_SORT_COLUMNS, DEFAULT_PROJECT_SORT_COLUMN),
            sort_dir=validate_sort_direction(sort_dir),
        )
        if not projects:
            return []

        try:
            files = await self.file_repo.get_for_projects([p.id for p in projects])
        except SQLAlchemyError as e:
            # Projects are still listed, without attachments
            await self.session.rollback()
            log_error(logger, "Failed to load project files", e)
            files = []

        grouped = group_files(files)
        return [to_view(p, grouped.get(p.id)) for p in projects]

    async def get_years(self) -> list[int]:
        """Years that have at least one project, most recent first."""
        return await self.project_repo.get_years()

    async def get_project(self, project_id: int) -> ProjectView:
        """One project with its current attachments.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        files = await self.file_repo.get_for_project(project_id)
        return to_view(project, group_files(files).get(project_id))

    async def get_file(self, file_id: int) -> ProjectFileORM:
        """Attachment row by ID.

        Raises:
            ProjectFileNotFoundError: If the row does not exist
        """
        file_orm = await self.file_repo.get_by_id(file_id)
        if file_orm is None:
            raise ProjectFileNotFoundError(file_id)
        return file_orm
