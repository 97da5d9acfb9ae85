"""S3 / MinIO blob store."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from audit_api.exceptions import BlobStoreError
from audit_api.storage.base import BlobStore

logger = logging.getLogger(__name__)

# delete_objects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_EXISTS_CODES = {"412", "PreconditionFailed", "ConditionalRequestConflict"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3BlobStore(BlobStore):
    """Blob store backed by an S3-compatible bucket.

    boto3 is synchronous, so every call runs in a worker thread.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        addressing_style: str = "auto",
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        if client is None:
            client_kwargs: dict[str, Any] = {
                "region_name": region,
                "config": Config(
                    signature_version="s3v4",
                    s3={"addressing_style": addressing_style},
                ),
            }
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            # Without explicit keys boto3 falls back to its credential chain (IAM role, env)
            if access_key_id and secret_access_key:
                client_kwargs["aws_access_key_id"] = access_key_id
                client_kwargs["aws_secret_access_key"] = secret_access_key
            client = boto3.client("s3", **client_kwargs)
        self._client = client

    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=path,
                Body=content,
                ContentType=content_type,
                # Refuse to overwrite an existing object
                IfNoneMatch="*",
            )
        except ClientError as e:
            if _error_code(e) in _EXISTS_CODES:
                raise BlobStoreError("The resource already exists", {"path": path}) from e
            raise BlobStoreError(str(e), {"path": path}) from e
        except BotoCoreError as e:
            raise BlobStoreError(str(e), {"path": path}) from e
        logger.debug("Uploaded blob %s (%d bytes)", path, len(content))

    async def remove(self, paths: Sequence[str]) -> None:
        keys = [p for p in paths if p]
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            try:
                response = await asyncio.to_thread(
                    self._client.delete_objects,
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                logger.warning("Failed to remove %d blob(s): %s", len(batch), e)
                continue
            for error in response.get("Errors", []):
                logger.warning("Failed to remove blob %s: %s", error.get("Key"), error.get("Message"))

    async def exists(self, path: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self.bucket, Key=path)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise BlobStoreError(str(e), {"path": path}) from e
        except BotoCoreError as e:
            raise BlobStoreError(str(e), {"path": path}) from e
        return True

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        # Presigning is local computation and succeeds for missing keys, so check first
        if not await self.exists(path):
            raise BlobStoreError("Object not found", {"path": path})
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": path},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobStoreError(str(e), {"path": path}) from e
