"""Blob store interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence


class BlobStore(ABC):
    """Private object store addressed by hierarchical path strings.

    Each call is atomic on its own; there is no transaction spanning calls
    or spanning the blob store and the database.
    """

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Store a new object.

        Raises:
            BlobStoreError: If the path is already taken or the store rejects the write
        """

    @abstractmethod
    async def remove(self, paths: Sequence[str]) -> None:
        """Remove objects, best effort.

        Missing paths are ignored and failures are logged, never raised.
        """

    @abstractmethod
    async def create_signed_url(self, path: str, expires_in: int) -> str:
        """Mint a time-limited retrieval URL for an existing object.

        Raises:
            BlobStoreError: If the object does not exist or signing fails
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Whether an object is stored at path."""
