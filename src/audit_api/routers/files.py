"""Attachment access router."""

import mimetypes
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from fastapi.responses import FileResponse

from audit_api.dependencies import get_signed_access_service
from audit_api.exceptions import BlobStoreError
from audit_api.models.domain.admin_user import AdminUser
from audit_api.models.dto.project import SignedUrlResponse
from audit_api.security.auth import get_current_user
from audit_api.security.rate_limit import API_DEFAULT_LIMIT, limiter
from audit_api.services.signed_access_service import SignedAccessService
from audit_api.storage import BlobStore, LocalBlobStore, get_blob_store
from audit_api.utils.filename import basename

router = APIRouter()


@router.get("/download")
@limiter.limit(API_DEFAULT_LIMIT)
async def download_file(
    request: Request,
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
    path: str = Query(min_length=1, max_length=1024),
    expires: int = Query(),
    signature: str = Query(min_length=64, max_length=64),
) -> FileResponse:
    """Serve a blob from the local backend.

    The query string is the signed URL minted by the local store; no bearer
    token is needed.
    """
    if not isinstance(blob_store, LocalBlobStore):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Local storage backend disabled",
        )

    if not blob_store.verify(path, expires, signature):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired signature",
        )

    try:
        file_path = blob_store.local_path(path)
    except BlobStoreError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from e
    if not await blob_store.exists(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    media_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    return FileResponse(
        path=file_path,
        media_type=media_type,
        filename=basename(path),
        headers={"Cache-Control": "private, no-store"},
    )


@router.get("/{file_id}/signed-url", response_model=SignedUrlResponse)
@limiter.limit(API_DEFAULT_LIMIT)
async def get_signed_url(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    service: Annotated[SignedAccessService, Depends(get_signed_access_service)],
    file_id: int = Path(ge=1),
) -> SignedUrlResponse:
    """Mint a short-lived retrieval URL for one attachment. A new URL every call."""
    return await service.create_signed_url_for_file(file_id)
