"""Signed URL broker and local blob store tests."""

import time
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.constants.slots import AttachmentSlot
from audit_api.exceptions import BlobStoreError, ProjectFileNotFoundError, SignedUrlError
from audit_api.models.domain.pipeline import Caller, WriteSuccess
from audit_api.services.project_write_service import ProjectWriteService
from audit_api.services.signed_access_service import SignedAccessService
from audit_api.storage.local import DOWNLOAD_ROUTE, LocalBlobStore
from tests.conftest import VALID_FIELDS, InMemoryBlobStore, make_file


@pytest.fixture
def local_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(
        root=tmp_path,
        bucket="project-files",
        signing_key="test-signing-key",
        public_base_url="http://api.test/",
    )


class TestLocalBlobStore:
    """Filesystem backend."""

    async def test_upload_and_read(self, local_store: LocalBlobStore) -> None:
        await local_store.upload("projects/1/pdf/a.pdf", b"data", "application/pdf")

        assert await local_store.exists("projects/1/pdf/a.pdf")
        assert await local_store.read("projects/1/pdf/a.pdf") == b"data"

    async def test_upload_never_overwrites(self, local_store: LocalBlobStore) -> None:
        await local_store.upload("projects/1/pdf/a.pdf", b"first", "application/pdf")

        with pytest.raises(BlobStoreError, match="already exists"):
            await local_store.upload("projects/1/pdf/a.pdf", b"second", "application/pdf")
        assert await local_store.read("projects/1/pdf/a.pdf") == b"first"

    @pytest.mark.parametrize("path", ["../escape.txt", "projects/../../escape.txt", "/etc/passwd", ""])
    async def test_paths_outside_bucket_rejected(self, local_store: LocalBlobStore, path: str) -> None:
        with pytest.raises(BlobStoreError, match="Invalid blob path"):
            await local_store.upload(path, b"x", "text/plain")

    async def test_remove_is_best_effort(self, local_store: LocalBlobStore) -> None:
        await local_store.upload("projects/1/zip/a.zip", b"PK", "application/zip")

        await local_store.remove(["projects/1/zip/a.zip", "projects/1/zip/missing.zip", "../bad"])

        assert not await local_store.exists("projects/1/zip/a.zip")

    async def test_signed_url_round_trip(self, local_store: LocalBlobStore) -> None:
        await local_store.upload("projects/1/pdf/a.pdf", b"data", "application/pdf")

        url = await local_store.create_signed_url("projects/1/pdf/a.pdf", 60)

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == f"http://api.test{DOWNLOAD_ROUTE}"
        query = {k: v[0] for k, v in parse_qs(parts.query).items()}
        assert query["path"] == "projects/1/pdf/a.pdf"
        assert local_store.verify(query["path"], int(query["expires"]), query["signature"])

    async def test_signature_is_bound_to_path_and_expiry(self, local_store: LocalBlobStore) -> None:
        expires = int(time.time()) + 60
        signature = local_store.sign("projects/1/pdf/a.pdf", expires)

        assert not local_store.verify("projects/1/pdf/b.pdf", expires, signature)
        assert not local_store.verify("projects/1/pdf/a.pdf", expires + 1, signature)
        assert not local_store.verify("projects/1/pdf/a.pdf", expires, signature, now=expires + 1)

    async def test_signing_missing_object_fails(self, local_store: LocalBlobStore) -> None:
        with pytest.raises(BlobStoreError, match="Object not found"):
            await local_store.create_signed_url("projects/1/pdf/nope.pdf", 60)


class TestSignedAccessService:
    """Signed URL broker."""

    async def test_fresh_url_for_path(self, session: AsyncSession, blob_store: InMemoryBlobStore) -> None:
        blob_store.objects["projects/1/pdf/a.pdf"] = (b"x", "application/pdf")
        service = SignedAccessService(session, blob_store, expires_in=60)

        response = await service.create_signed_url("projects/1/pdf/a.pdf")

        assert response.url == "https://blobs.test/projects/1/pdf/a.pdf?expires_in=60"
        assert response.expires_in == 60

    async def test_store_failure_is_signed_url_error(
        self, session: AsyncSession, blob_store: InMemoryBlobStore
    ) -> None:
        service = SignedAccessService(session, blob_store, expires_in=60)

        with pytest.raises(SignedUrlError) as exc_info:
            await service.create_signed_url("projects/1/pdf/missing.pdf")
        assert exc_info.value.message == "Signed URL error: Object not found"

    async def test_url_for_attachment_row(
        self, session: AsyncSession, blob_store: InMemoryBlobStore, admin_caller: Caller
    ) -> None:
        created = await ProjectWriteService(session, blob_store, "projects").create_project(
            VALID_FIELDS, {AttachmentSlot.INVOICE: make_file("invoice.pdf")}, admin_caller
        )
        assert isinstance(created, WriteSuccess)
        path = blob_store.uploads[0]

        service = SignedAccessService(session, blob_store, expires_in=120)
        view_file_id = (await service.read_service.get_project(created.project_id)).files[
            AttachmentSlot.INVOICE
        ].id

        response = await service.create_signed_url_for_file(view_file_id)

        assert response.url == f"https://blobs.test/{path}?expires_in=120"

    async def test_unknown_attachment(self, session: AsyncSession, blob_store: InMemoryBlobStore) -> None:
        service = SignedAccessService(session, blob_store, expires_in=60)

        with pytest.raises(ProjectFileNotFoundError):
            await service.create_signed_url_for_file(999)
