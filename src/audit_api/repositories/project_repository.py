"""Project repository."""

from datetime import date, datetime, timezone

from sqlalchemy import delete, or_, select

from audit_api.constants.validation import DEFAULT_PROJECT_SORT_COLUMN
from audit_api.models.domain.project import ProjectFields
from audit_api.models.orm.project import ProjectORM
from audit_api.repositories.base import BaseRepository
from audit_api.utils.validation import escape_like_wildcards


def _row_values(fields: ProjectFields) -> dict:
    """Column values for a project row.

    Raises:
        ValueError: If inspection_date is not a calendar date
    """
    return {
        "reference": fields.reference,
        "customer": fields.customer,
        "certification_type": fields.certification_type,
        "city": fields.city,
        "inspection_date": (
            date.fromisoformat(fields.inspection_date) if fields.inspection_date else None
        ),
        "status": fields.status,
        "notes": fields.notes or None,
        "year": fields.year,
    }


class ProjectRepository(BaseRepository[ProjectORM]):
    """Repository for project operations."""

    model = ProjectORM

    async def create_project(self, fields: ProjectFields) -> ProjectORM:
        """Insert a project row.

        Args:
            fields: Validated project fields

        Returns:
            Created ProjectORM
        """
        return await self.create(
            **_row_values(fields),
            last_updated=datetime.now(timezone.utc),
        )

    async def update_fields(self, project_id: int, fields: ProjectFields) -> ProjectORM | None:
        """Overwrite a project's fields and bump last_updated.

        Args:
            project_id: Project ID
            fields: Validated project fields

        Returns:
            Updated ProjectORM or None if not found
        """
        return await self.update(
            project_id,
            **_row_values(fields),
            last_updated=datetime.now(timezone.utc),
        )

    async def list_projects(
        self,
        year: int | None = None,
        status: str | None = None,
        search: str | None = None,
        sort_by: str = DEFAULT_PROJECT_SORT_COLUMN,
        sort_dir: str = "desc",
    ) -> list[ProjectORM]:
        """List projects for the project table.

        Args:
            year: Filter by derived year
            status: Filter by status
            search: Case-insensitive match on reference, customer or city
            sort_by: Column to sort by (already whitelisted)
            sort_dir: Sort direction (asc/desc)

        Returns:
            Projects ordered by the sort column, ties broken by insertion order
        """
        query = select(ProjectORM)

        if year is not None:
            query = query.where(ProjectORM.year == year)

        if status:
            query = query.where(ProjectORM.status == status)

        if search:
            # Escape LIKE wildcards to prevent pattern injection
            search_pattern = f"%{escape_like_wildcards(search.lower())}%"
            query = query.where(
                or_(
                    ProjectORM.reference.ilike(search_pattern, escape="\\"),
                    ProjectORM.customer.ilike(search_pattern, escape="\\"),
                    ProjectORM.city.ilike(search_pattern, escape="\\"),
                )
            )

        sort_columns = {
            "reference": ProjectORM.reference,
            "customer": ProjectORM.customer,
            "certification_type": ProjectORM.certification_type,
            "city": ProjectORM.city,
            "inspection_date": ProjectORM.inspection_date,
            "status": ProjectORM.status,
            "year": ProjectORM.year,
            "last_updated": ProjectORM.last_updated,
        }
        sort_column = sort_columns.get(sort_by, ProjectORM.inspection_date)

        if sort_dir not in ("asc", "desc"):
            sort_dir = "desc"

        if sort_dir == "desc":
            query = query.order_by(sort_column.desc().nulls_last(), ProjectORM.id.asc())
        else:
            query = query.order_by(sort_column.asc().nulls_last(), ProjectORM.id.asc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_years(self) -> list[int]:
        """Distinct project years, most recent first."""
        result = await self.session.execute(
            select(ProjectORM.year).distinct().order_by(ProjectORM.year.desc())
        )
        return list(result.scalars().all())

    async def delete_project(self, project_id: int) -> bool:
        """Delete a project row by statement.

        Attachment rows are removed by the ON DELETE CASCADE foreign key; callers
        that need the blobs gone must remove them first.

        Returns:
            True if a row was deleted
        """
        result = await self.session.execute(
            delete(ProjectORM).where(ProjectORM.id == project_id)
        )
        await self.session.flush()
        return result.rowcount > 0
