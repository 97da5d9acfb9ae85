"""Centralized dependency injection factories for FastAPI.

This module provides reusable service factory functions for dependency injection,
eliminating duplicate definitions across routers.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.database import get_db
from audit_api.services.auth_service import AuthService
from audit_api.services.email_service import EmailService
from audit_api.services.project_read_service import ProjectReadService
from audit_api.services.project_write_service import ProjectWriteService
from audit_api.services.signed_access_service import SignedAccessService
from audit_api.storage import BlobStore, get_blob_store


# =============================================================================
# Core Service Factories
# =============================================================================


def get_email_service() -> EmailService:
    """Get EmailService instance."""
    return EmailService()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> AuthService:
    """Get AuthService instance."""
    return AuthService(db, email_service)


# =============================================================================
# Project Service Factories
# =============================================================================


def get_project_read_service(db: AsyncSession = Depends(get_db)) -> ProjectReadService:
    """Get ProjectReadService instance."""
    return ProjectReadService(db)


def get_project_write_service(
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ProjectWriteService:
    """Get ProjectWriteService instance."""
    return ProjectWriteService(db, blob_store)


def get_signed_access_service(
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> SignedAccessService:
    """Get SignedAccessService instance."""
    return SignedAccessService(db, blob_store)
