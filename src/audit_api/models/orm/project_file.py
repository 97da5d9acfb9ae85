"""Project attachment ORM model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.models.orm.base import Base


class ProjectFileORM(Base):
    """Metadata row linking a project slot to a blob storage path.

    Rows are never updated in place: replacing a slot's file inserts a new row
    and deletes the older ones, so a storage path never changes once written.
    """

    __tablename__ = "project_files"
    __table_args__ = (Index("idx_project_files_project_slot", "project_id", "slot"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    # inspectionPlanPDF, auditReportPDF, auditReportWord, invoicePDF, travelFeesZIP
    slot: Mapped[str] = mapped_column(String(50), nullable=False)
    # pdf, doc, zip
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    mime: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)  # Size in bytes
    uploaded_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    project: Mapped["ProjectORM"] = relationship("ProjectORM", back_populates="files")


# Import to avoid circular import
from audit_api.models.orm.project import ProjectORM  # noqa: E402, F401
