"""Blob storage backends."""

from functools import lru_cache

from audit_api.config import get_settings
from audit_api.constants.paths import BLOBS_DIR
from audit_api.storage.base import BlobStore
from audit_api.storage.local import LocalBlobStore
from audit_api.storage.s3 import S3BlobStore


@lru_cache
def get_blob_store() -> BlobStore:
    """Blob store for the configured backend (one instance per process)."""
    settings = get_settings()
    if settings.storage_backend == "local":
        return LocalBlobStore(
            root=BLOBS_DIR,
            bucket=settings.storage_bucket,
            signing_key=settings.jwt_secret,
            public_base_url=settings.public_base_url,
        )
    return S3BlobStore(
        bucket=settings.storage_bucket,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key_id=settings.s3_access_key_id,
        secret_access_key=settings.s3_secret_access_key,
        addressing_style=settings.s3_addressing_style,
    )


__all__ = ["BlobStore", "LocalBlobStore", "S3BlobStore", "get_blob_store"]
