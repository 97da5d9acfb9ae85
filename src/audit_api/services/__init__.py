"""Services package."""

from audit_api.services.auth_service import AuthService
from audit_api.services.project_read_service import ProjectReadService
from audit_api.services.project_write_service import ProjectWriteService
from audit_api.services.signed_access_service import SignedAccessService

__all__ = [
    "AuthService",
    "ProjectReadService",
    "ProjectWriteService",
    "SignedAccessService",
]
