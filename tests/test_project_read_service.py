"""Project read model tests."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.constants.slots import AttachmentSlot, ContentKind
from audit_api.exceptions import ProjectFileNotFoundError, ProjectNotFoundError
from audit_api.models.domain.project import ProjectFields
from audit_api.models.orm import ProjectFileORM
from audit_api.repositories.project_repository import ProjectRepository
from audit_api.services.project_read_service import (
    ProjectReadService,
    classify_file,
    group_files,
)


def file_row(
    file_id: int,
    slot: str,
    path: str,
    mime: str = "application/pdf",
    kind: str = "pdf",
    project_id: int = 1,
) -> ProjectFileORM:
    return ProjectFileORM(
        id=file_id,
        project_id=project_id,
        slot=slot,
        kind=kind,
        path=path,
        mime=mime,
        size=10,
    )


async def seed_project(session: AsyncSession, **overrides) -> int:
    values = {
        "reference": "AUD-1",
        "customer": "ACME",
        "certification_type": "ISO 9001",
        "city": "Lyon",
        "inspection_date": "2024-05-17",
        "status": "Planned",
        "notes": "",
        "year": 2024,
    }
    values.update(overrides)
    project = await ProjectRepository(session).create_project(ProjectFields(**values))
    await session.commit()
    return project.id


class TestClassifyFile:
    """Slot classification of stored rows."""

    def test_known_slot_name_wins(self) -> None:
        row = file_row(1, "invoicePDF", "projects/1/pdf/anything.pdf")
        assert classify_file(row) == AttachmentSlot.INVOICE

    @pytest.mark.parametrize(
        ("path", "mime", "kind", "expected"),
        [
            ("projects/1/pdf/inspection-plan.pdf", "application/pdf", "pdf", AttachmentSlot.INSPECTION_PLAN),
            ("projects/1/pdf/audit-report.pdf", "application/pdf", "pdf", AttachmentSlot.AUDIT_REPORT_PDF),
            ("projects/1/doc/report.docx", "application/msword", "doc", AttachmentSlot.AUDIT_REPORT_WORD),
            ("projects/1/pdf/facture-2024.pdf", "application/pdf", "pdf", AttachmentSlot.INVOICE),
            ("projects/1/zip/frais.zip", "application/zip", "zip", AttachmentSlot.TRAVEL_FEES),
        ],
    )
    def test_legacy_rows_classified_by_keywords(self, path, mime, kind, expected) -> None:
        row = file_row(1, "legacy", path, mime=mime, kind=kind)
        assert classify_file(row) == expected

    def test_unmatched_row(self) -> None:
        row = file_row(1, "", "projects/1/misc/photo.png", mime="image/png", kind="img")
        assert classify_file(row) is None


class TestGroupFiles:
    """Per-project slot maps."""

    def test_first_row_per_slot_wins(self) -> None:
        rows = [
            file_row(1, "invoicePDF", "projects/1/pdf/invoice-1.pdf"),
            file_row(2, "invoicePDF", "projects/1/pdf/invoice-2.pdf"),
            file_row(3, "travelFeesZIP", "projects/2/zip/fees.zip", "application/zip", "zip", project_id=2),
        ]

        grouped = group_files(rows)

        assert grouped[1][AttachmentSlot.INVOICE].id == 1
        assert grouped[1][AttachmentSlot.INVOICE].label == "invoice-1.pdf"
        assert list(grouped[2]) == [AttachmentSlot.TRAVEL_FEES]
        assert grouped[2][AttachmentSlot.TRAVEL_FEES].kind == ContentKind.ZIP

    def test_unclassifiable_rows_are_skipped(self) -> None:
        rows = [file_row(1, "", "projects/1/misc/photo.png", mime="image/png", kind="img")]
        assert group_files(rows) == {}


class TestProjectReadService:
    """Listing and lookups against the database."""

    @pytest.fixture
    async def seeded(self, session: AsyncSession) -> dict[str, int]:
        return {
            "AUD-1": await seed_project(session),
            "AUD-2": await seed_project(
                session,
                reference="AUD-2",
                customer="Globex",
                city="Paris",
                inspection_date="2023-02-01",
                status="Completed",
                year=2023,
            ),
            "AUD-3": await seed_project(
                session,
                reference="AUD-3",
                customer="Initech",
                inspection_date=None,
                status="To schedule",
                year=2025,
            ),
        }

    async def test_default_order_newest_inspection_first(
        self, session: AsyncSession, seeded: dict[str, int]
    ) -> None:
        items = await ProjectReadService(session).list_projects()
        # Projects without a date sort last
        assert [p.reference for p in items] == ["AUD-1", "AUD-2", "AUD-3"]

    async def test_filters(self, session: AsyncSession, seeded: dict[str, int]) -> None:
        service = ProjectReadService(session)

        assert [p.reference for p in await service.list_projects(year=2023)] == ["AUD-2"]
        assert [p.reference for p in await service.list_projects(status="Completed")] == ["AUD-2"]
        # Unknown statuses do not filter
        assert len(await service.list_projects(status="Archived")) == 3

    async def test_search(self, session: AsyncSession, seeded: dict[str, int]) -> None:
        service = ProjectReadService(session)

        assert {p.reference for p in await service.list_projects(search="lyon")} == {"AUD-1", "AUD-3"}
        assert [p.reference for p in await service.list_projects(search="GLOB")] == ["AUD-2"]
        assert await service.list_projects(search="%") == []

    async def test_sorting(self, session: AsyncSession, seeded: dict[str, int]) -> None:
        service = ProjectReadService(session)

        items = await service.list_projects(sort_by="customer", sort_dir="asc")
        assert [p.customer for p in items] == ["ACME", "Globex", "Initech"]

        items = await service.list_projects(sort_by="id; DROP TABLE projects", sort_dir="sideways")
        assert [p.reference for p in items] == ["AUD-1", "AUD-2", "AUD-3"]

    async def test_years(self, session: AsyncSession, seeded: dict[str, int]) -> None:
        assert await ProjectReadService(session).get_years() == [2025, 2024, 2023]

    async def test_empty_database(self, session: AsyncSession) -> None:
        service = ProjectReadService(session)
        assert await service.list_projects() == []
        assert await service.get_years() == []

    async def test_attachments_in_listing(self, session: AsyncSession, seeded: dict[str, int]) -> None:
        project_id = seeded["AUD-1"]
        session.add_all(
            [
                ProjectFileORM(
                    project_id=project_id, slot="invoicePDF", kind="pdf",
                    path="projects/a/pdf/invoice-1.pdf", mime="application/pdf", size=3,
                ),
                ProjectFileORM(
                    project_id=project_id, slot="invoicePDF", kind="pdf",
                    path="projects/a/pdf/invoice-2.pdf", mime="application/pdf", size=3,
                ),
            ]
        )
        await session.commit()

        items = await ProjectReadService(session).list_projects(search="AUD-1")

        assert len(items) == 1
        files = items[0].files
        assert list(files) == [AttachmentSlot.INVOICE]
        assert files[AttachmentSlot.INVOICE].path == "projects/a/pdf/invoice-1.pdf"

    async def test_get_project(self, session: AsyncSession, seeded: dict[str, int]) -> None:
        view = await ProjectReadService(session).get_project(seeded["AUD-3"])

        assert view.reference == "AUD-3"
        assert view.inspection_date is None
        assert view.files == {}

    async def test_get_missing_project(self, session: AsyncSession) -> None:
        with pytest.raises(ProjectNotFoundError):
            await ProjectReadService(session).get_project(404)

    async def test_get_missing_file(self, session: AsyncSession) -> None:
        with pytest.raises(ProjectFileNotFoundError):
            await ProjectReadService(session).get_file(404)
