"""HTTP-level tests for the routers and error envelopes."""

from collections.abc import AsyncGenerator
from pathlib import Path
from urllib.parse import urlsplit

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.database import get_db
from audit_api.main import app
from audit_api.models.orm import AdminUserORM
from audit_api.security.auth import create_access_token
from audit_api.storage import LocalBlobStore, get_blob_store
from tests.conftest import ADMIN_PASSWORD, VALID_FIELDS, InMemoryBlobStore

PDF = ("invoice.pdf", b"%PDF-1.7 invoice", "application/pdf")


def bearer(user: AdminUserORM) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id=user.id, email=user.email)}"}


@pytest.fixture
async def client(session: AsyncSession, blob_store: InMemoryBlobStore) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(admin_user: AdminUserORM) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def viewer_headers(viewer_user: AdminUserORM) -> dict[str, str]:
    return bearer(viewer_user)


async def create_project(client: AsyncClient, headers: dict[str, str], **files) -> int:
    response = await client.post("/api/v1/projects", data=VALID_FIELDS, files=files or None, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["project"]["id"]


class TestAuthentication:
    """Bearer token handling and auth routes."""

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/projects")

        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication required"}

    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/projects", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid or expired token"}

    async def test_login_and_me(self, client: AsyncClient, admin_user: AdminUserORM) -> None:
        response = await client.post(
            "/api/v1/auth/login", json={"email": "admin@example.com", "password": ADMIN_PASSWORD}
        )
        assert response.status_code == 200
        access_token = response.json()["access_token"]

        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access_token}"})

        assert me.status_code == 200
        assert me.json()["email"] == "admin@example.com"
        assert me.json()["is_admin"] is True

    async def test_bad_login(self, client: AsyncClient, admin_user: AdminUserORM) -> None:
        response = await client.post(
            "/api/v1/auth/login", json={"email": "admin@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid credentials"}

    async def test_reset_request_does_not_reveal_accounts(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/password/reset-request", json={"email": "ghost@example.com"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "If the account exists, a reset link has been sent"}


class TestProjectRoutes:
    """Project create, read, update and delete over HTTP."""

    async def test_create_and_list(
        self, client: AsyncClient, admin_headers: dict[str, str], blob_store: InMemoryBlobStore
    ) -> None:
        project_id = await create_project(client, admin_headers, invoicePDF=PDF)

        response = await client.get("/api/v1/projects", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["years"] == [2024]
        item = body["items"][0]
        assert item["id"] == project_id
        assert item["reference"] == "AUD-2024-001"
        assert list(item["files"]) == ["invoicePDF"]
        assert item["files"]["invoicePDF"]["path"] in blob_store.objects

    async def test_validation_envelope(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        response = await client.post(
            "/api/v1/projects", data={**VALID_FIELDS, "city": "  ", "inspection_date": "17/05/2024"}, headers=admin_headers
        )

        assert response.status_code == 422
        body = response.json()
        assert body["ok"] is False
        assert body["error"] == "Validation failed"
        assert set(body["field_errors"]) == {"city", "inspection_date"}

    async def test_viewer_cannot_write(self, client: AsyncClient, viewer_headers: dict[str, str]) -> None:
        response = await client.post("/api/v1/projects", data=VALID_FIELDS, headers=viewer_headers)

        assert response.status_code == 403
        assert response.json()["kind"] == "access_denied"

    async def test_viewer_can_read(
        self, client: AsyncClient, admin_headers: dict[str, str], viewer_headers: dict[str, str]
    ) -> None:
        project_id = await create_project(client, admin_headers)

        response = await client.get(f"/api/v1/projects/{project_id}", headers=viewer_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "Planned"

    async def test_wrong_file_type(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        response = await client.post(
            "/api/v1/projects",
            data=VALID_FIELDS,
            files={"travelFeesZIP": ("fees.pdf", b"%PDF", "application/pdf")},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "error": "Invalid file type for travelFeesZIP",
            "kind": "invalid_file_type",
        }

    async def test_update_and_delete(
        self, client: AsyncClient, admin_headers: dict[str, str], blob_store: InMemoryBlobStore
    ) -> None:
        project_id = await create_project(client, admin_headers, invoicePDF=PDF)

        response = await client.put(
            f"/api/v1/projects/{project_id}",
            data={**VALID_FIELDS, "status": "Completed"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        response = await client.delete(f"/api/v1/projects/{project_id}", headers=admin_headers)
        assert response.status_code == 200
        assert blob_store.objects == {}

        response = await client.get(f"/api/v1/projects/{project_id}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "Project not found"}

    async def test_update_missing_project(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        response = await client.put("/api/v1/projects/4242", data=VALID_FIELDS, headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    async def test_list_rejects_bad_sort_direction(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        response = await client.get("/api/v1/projects?sort_dir=sideways", headers=admin_headers)

        assert response.status_code == 422


class TestFileRoutes:
    """Signed URL and local download routes."""

    async def test_signed_url(
        self, client: AsyncClient, admin_headers: dict[str, str], viewer_headers: dict[str, str]
    ) -> None:
        project_id = await create_project(client, admin_headers, invoicePDF=PDF)
        project = (await client.get(f"/api/v1/projects/{project_id}", headers=admin_headers)).json()
        file_id = project["files"]["invoicePDF"]["id"]

        response = await client.get(f"/api/v1/files/{file_id}/signed-url", headers=viewer_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["url"].startswith("https://blobs.test/projects/")
        assert body["expires_in"] > 0

    async def test_signed_url_unknown_file(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        response = await client.get("/api/v1/files/999/signed-url", headers=admin_headers)

        assert response.status_code == 404
        assert response.json() == {"detail": "File not found"}

    async def test_signed_url_store_failure(
        self, client: AsyncClient, admin_headers: dict[str, str], blob_store: InMemoryBlobStore
    ) -> None:
        project_id = await create_project(client, admin_headers, invoicePDF=PDF)
        project = (await client.get(f"/api/v1/projects/{project_id}", headers=admin_headers)).json()
        blob_store.fail_signing = True

        response = await client.get(
            f"/api/v1/files/{project['files']['invoicePDF']['id']}/signed-url", headers=admin_headers
        )

        assert response.status_code == 502
        assert response.json()["detail"].startswith("Signed URL error")

    async def test_download_needs_local_backend(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/files/download", params={"path": "a", "expires": 1, "signature": "0" * 64}
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "Local storage backend disabled"}

    async def test_local_download(self, client: AsyncClient, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path, "bucket", "signing-key", "http://test")
        app.dependency_overrides[get_blob_store] = lambda: store
        await store.upload("projects/1/pdf/plan.pdf", b"%PDF-plan", "application/pdf")
        url = urlsplit(await store.create_signed_url("projects/1/pdf/plan.pdf", 60))

        response = await client.get(f"{url.path}?{url.query}")

        assert response.status_code == 200
        assert response.content == b"%PDF-plan"
        assert response.headers["cache-control"] == "private, no-store"

        tampered = url.query.replace("signature=", "signature=0")[: len(url.query)]
        response = await client.get(f"{url.path}?{tampered}")
        assert response.status_code == 403
        assert response.json() == {"detail": "Invalid or expired signature"}


class TestHealth:
    """Health endpoints."""

    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["x-content-type-options"] == "nosniff"

    async def test_database_check_reports_unavailable(self, client: AsyncClient) -> None:
        # SQLite has no version() function
        response = await client.get("/api/v1/health/db")

        assert response.status_code == 503
        assert response.json() == {"detail": "Service temporarily unavailable"}
