"""Filesystem blob store for single-host deployments.

Objects live under ``<root>/<bucket>/<path>``. Retrieval URLs point at the
API's own download route and carry an HMAC-SHA256 signature over the path
and expiry timestamp.
"""

import asyncio
import hashlib
import hmac
import logging
import time
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import urlencode

from audit_api.exceptions import BlobStoreError
from audit_api.storage.base import BlobStore

logger = logging.getLogger(__name__)

DOWNLOAD_ROUTE = "/api/v1/files/download"


class LocalBlobStore(BlobStore):
    """Blob store writing to a local directory."""

    def __init__(self, root: Path, bucket: str, signing_key: str, public_base_url: str) -> None:
        self.base_dir = (root / bucket).resolve()
        self._signing_key = hashlib.sha256(f"blob-url:{signing_key}".encode()).digest()
        self._public_base_url = public_base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        """Map a blob path to a file, refusing anything outside the bucket."""
        if not path or path.startswith("/"):
            raise BlobStoreError("Invalid blob path", {"path": path})
        target = (self.base_dir / path).resolve()
        if not target.is_relative_to(self.base_dir):
            raise BlobStoreError("Invalid blob path", {"path": path})
        return target

    def _write_new(self, target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        # Exclusive create: an existing object is never overwritten
        with open(target, "xb") as f:
            f.write(content)

    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write_new, target, content)
        except FileExistsError as e:
            raise BlobStoreError("The resource already exists", {"path": path}) from e
        except OSError as e:
            raise BlobStoreError(f"Could not write blob: {e.strerror}", {"path": path}) from e
        logger.debug("Stored blob %s (%d bytes, %s)", path, len(content), content_type)

    async def remove(self, paths: Sequence[str]) -> None:
        for path in paths:
            try:
                target = self._resolve(path)
                await asyncio.to_thread(target.unlink, missing_ok=True)
            except (BlobStoreError, OSError) as e:
                logger.warning("Failed to remove blob %s: %s", path, e)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(path).is_file)

    async def read(self, path: str) -> bytes:
        """Read an object's bytes.

        Raises:
            BlobStoreError: If the object does not exist
        """
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError as e:
            raise BlobStoreError("Object not found", {"path": path}) from e

    def local_path(self, path: str) -> Path:
        """Filesystem location of an object."""
        return self._resolve(path)

    def sign(self, path: str, expires: int) -> str:
        """HMAC signature for a path and absolute expiry timestamp."""
        message = f"{path}\n{expires}".encode()
        return hmac.new(self._signing_key, message, hashlib.sha256).hexdigest()

    def verify(self, path: str, expires: int, signature: str, now: float | None = None) -> bool:
        """Check a download request's signature and expiry."""
        if expires < (now if now is not None else time.time()):
            return False
        return hmac.compare_digest(self.sign(path, expires), signature)

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        if not await self.exists(path):
            raise BlobStoreError("Object not found", {"path": path})
        expires = int(time.time()) + expires_in
        query = urlencode({"path": path, "expires": expires, "signature": self.sign(path, expires)})
        return f"{self._public_base_url}{DOWNLOAD_ROUTE}?{query}"
