"""Authenticated user domain model."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from audit_api.models.domain.pipeline import Caller


class AdminUser(BaseModel):
    """Authenticated user domain model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    name: str | None = None
    is_admin: bool = False
    is_active: bool = True
    last_login_at: datetime | None = None
    password_changed_at: datetime | None = None

    def as_caller(self) -> Caller:
        """Capability handed to the project write pipeline."""
        return Caller(user_id=self.id, is_admin=self.is_admin and self.is_active)
