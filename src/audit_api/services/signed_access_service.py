"""Signed retrieval URLs for stored attachments."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.config import get_settings
from audit_api.exceptions import BlobStoreError, SignedUrlError
from audit_api.models.dto.project import SignedUrlResponse
from audit_api.services.project_read_service import ProjectReadService
from audit_api.storage.base import BlobStore
from audit_api.utils.secure_logging import log_warning

logger = logging.getLogger(__name__)


class SignedAccessService:
    """Exchanges stored paths for short-lived retrieval URLs.

    Nothing is cached: every request mints a fresh URL.
    """

    def __init__(
        self,
        session: AsyncSession,
        blob_store: BlobStore,
        expires_in: int | None = None,
    ) -> None:
        self.blob_store = blob_store
        self.read_service = ProjectReadService(session)
        self.expires_in = expires_in or get_settings().signed_url_expiry_seconds

    async def create_signed_url(self, path: str) -> SignedUrlResponse:
        """Mint a retrieval URL for a blob path.

        Raises:
            SignedUrlError: If the store rejects the request (e.g. missing object)
        """
        try:
            url = await self.blob_store.create_signed_url(path, self.expires_in)
        except BlobStoreError as e:
            log_warning(logger, "Could not sign attachment URL", e)
            raise SignedUrlError(e.message) from e
        return SignedUrlResponse(url=url, expires_in=self.expires_in)

    async def create_signed_url_for_file(self, file_id: int) -> SignedUrlResponse:
        """Mint a retrieval URL for an attachment row.

        Raises:
            ProjectFileNotFoundError: If the row does not exist
            SignedUrlError: If the store rejects the request
        """
        file_orm = await self.read_service.get_file(file_id)
        return await self.create_signed_url(file_orm.path)
