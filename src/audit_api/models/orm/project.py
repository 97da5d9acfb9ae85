"""Audit project ORM model."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audit_api.models.orm.base import Base


class ProjectORM(Base):
    """Audit project database model."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reference: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    customer: Mapped[str] = mapped_column(String(255), nullable=False)
    certification_type: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    inspection_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Calendar year of inspection_date, or the year the row was written
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    files: Mapped[list["ProjectFileORM"]] = relationship(
        "ProjectFileORM",
        back_populates="project",
        passive_deletes=True,
    )


# Import to avoid circular import
from audit_api.models.orm.project_file import ProjectFileORM  # noqa: E402, F401
