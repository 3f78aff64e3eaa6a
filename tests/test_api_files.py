"""Tests for /api/files endpoints."""

import io
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from azure.core.exceptions import ResourceNotFoundError
from conftest import ACCOUNT_KEY, make_transport
from fastapi.testclient import TestClient

from filestore.deps import get_images, get_storage
from filestore.main import app
from filestore.schemas.domain import AvatarResult, ImageMetadata, StoredFile, UserContext
from filestore.services import ImageProcessingError
from filestore.storage.contracts import StorageAuthorizationError, StorageConfigError
from filestore.storage.identity_impl import IdentityBlobStorage
from filestore.storage.signed_impl import SignedURLBlobStorage

USER = {"X-User-Id": "u1"}
STORED_URL = "https://teststorage.blob.core.windows.net/files/images/u1/a.png"


@pytest.fixture
def client(mock_storage):
    images = MagicMock()
    images.process_avatar = AsyncMock()
    app.dependency_overrides[get_storage] = lambda: mock_storage
    app.dependency_overrides[get_images] = lambda: images
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            client.images = images
            yield client
    finally:
        app.dependency_overrides.clear()


def _download_with(storage, filepath):
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            return client.get("/api/files/download", params={"filepath": filepath}, headers=USER)
    finally:
        app.dependency_overrides.clear()


class TestAuthentication:
    def test_missing_user_header_returns_401(self, client, mock_storage):
        response = client.get("/api/files/url", params={"file_name": "a.png"})

        assert response.status_code == 401
        mock_storage.get_url.assert_not_awaited()


class TestUpload:
    def test_upload_stores_local_copy(self, client, mock_storage):
        seen = {}

        async def upload_local_file(*, user, local_path, file_id):
            with open(local_path, "rb") as fh:
                seen["content"] = fh.read()
            seen["basename"] = local_path.rsplit("/", 1)[-1]
            seen["user"] = user
            return StoredFile(filepath=f"{STORED_URL}?sig=x", bytes=len(seen["content"]))

        mock_storage.upload_local_file.side_effect = upload_local_file

        files = {"file": ("photo.jpg", io.BytesIO(b"jpeg-data"), "image/jpeg")}
        response = client.post("/api/files", files=files, headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["filename"] == "photo.jpg"
        assert data["filepath"] == f"{STORED_URL}?sig=x"
        assert data["bytes"] == 9
        assert data["file_id"]
        assert seen == {"content": b"jpeg-data", "basename": "photo.jpg", "user": UserContext(id="u1")}

    def test_upload_oversize_returns_413(self, client, mock_storage, monkeypatch):
        monkeypatch.setattr("filestore.routes.files.settings.MAX_FILE_SIZE_MB", 1)

        files = {"file": ("big.bin", io.BytesIO(b"X" * (2 * 1024 * 1024)), "application/octet-stream")}
        response = client.post("/api/files", files=files, headers=USER)

        assert response.status_code == 413
        assert "exceeds" in response.json()["detail"]
        mock_storage.upload_local_file.assert_not_awaited()

    def test_upload_path_components_are_stripped(self, client, mock_storage):
        mock_storage.upload_local_file.return_value = StoredFile(filepath=STORED_URL, bytes=1)

        files = {"file": ("../../etc/passwd", io.BytesIO(b"x"), "text/plain")}
        response = client.post("/api/files", files=files, headers=USER)

        assert response.status_code == 200
        assert response.json()["filename"] == "passwd"

    def test_storage_not_configured_returns_503(self, client, mock_storage):
        mock_storage.upload_local_file.side_effect = StorageConfigError("init", None, None, "missing")

        files = {"file": ("a.txt", io.BytesIO(b"x"), "text/plain")}
        response = client.post("/api/files", files=files, headers=USER)

        assert response.status_code == 503


class TestImport:
    def test_import_saves_remote_file(self, client, mock_storage):
        mock_storage.save_url.return_value = STORED_URL

        response = client.post(
            "/api/files/import",
            json={"url": "https://example.com/pic.png", "file_name": "pic.png"},
            headers=USER,
        )

        assert response.status_code == 200
        assert response.json() == {"url": STORED_URL}
        mock_storage.save_url.assert_awaited_once_with(
            user_id="u1", url="https://example.com/pic.png", file_name="pic.png"
        )

    def test_import_fetch_failure_returns_502(self, client, mock_storage):
        request = httpx.Request("GET", "https://example.com/pic.png")
        mock_storage.save_url.side_effect = httpx.ConnectError("refused", request=request)

        response = client.post(
            "/api/files/import",
            json={"url": "https://example.com/pic.png", "file_name": "pic.png"},
            headers=USER,
        )

        assert response.status_code == 502


class TestGetURL:
    def test_user_scoped_url(self, client, mock_storage):
        mock_storage.get_url.return_value = STORED_URL

        response = client.get("/api/files/url", params={"file_name": "a.png"}, headers=USER)

        assert response.status_code == 200
        assert response.json() == {"url": STORED_URL}
        mock_storage.get_url.assert_awaited_once_with(file_name="a.png", base_path=None, user_id="u1")

    def test_shared_url_omits_user(self, client, mock_storage):
        mock_storage.get_url.return_value = "https://teststorage.blob.core.windows.net/files/images/logo.png"

        response = client.get(
            "/api/files/url", params={"file_name": "logo.png", "shared": "true"}, headers=USER
        )

        assert response.status_code == 200
        mock_storage.get_url.assert_awaited_once_with(file_name="logo.png", base_path=None, user_id=None)

    @pytest.mark.parametrize(
        "params",
        [
            {"file_name": "secret.png", "base_path": "images/victim", "shared": "true"},
            {"file_name": "victim/secret.png"},
            {"file_name": "../victim/secret.png"},
        ],
    )
    def test_nested_names_are_rejected(self, client, mock_storage, params):
        response = client.get("/api/files/url", params=params, headers={"X-User-Id": "intruder"})

        assert response.status_code == 400
        mock_storage.get_url.assert_not_awaited()


class TestDownload:
    def test_download_streams_content(self, client, mock_storage):
        async def chunks():
            yield b"hello "
            yield b"world"

        mock_storage.open_stream.return_value = chunks()

        response = client.get("/api/files/download", params={"filepath": STORED_URL}, headers=USER)

        assert response.status_code == 200
        assert response.content == b"hello world"
        assert response.headers["content-type"] == "image/png"
        mock_storage.open_stream.assert_awaited_once_with(STORED_URL)

    def test_download_unparseable_url_returns_400(self, client, mock_storage):
        response = client.get("/api/files/download", params={"filepath": "nope"}, headers=USER)

        assert response.status_code == 400
        mock_storage.open_stream.assert_not_awaited()

    def test_download_other_users_file_returns_403(self, client, mock_storage):
        response = client.get(
            "/api/files/download",
            params={"filepath": "https://teststorage.blob.core.windows.net/files/images/victim/secret.png"},
            headers={"X-User-Id": "intruder"},
        )

        assert response.status_code == 403
        mock_storage.open_stream.assert_not_awaited()

    def test_download_missing_blob_identity_backend_returns_404(self, fake_azure):
        fake_azure.blob.download_blob.side_effect = ResourceNotFoundError("gone")
        storage = IdentityBlobStorage("teststorage", "files", credential_factory=lambda: "cred")

        response = _download_with(storage, STORED_URL)

        assert response.status_code == 404
        fake_azure.container.get_blob_client.assert_called_once_with("images/u1/a.png")

    def test_download_missing_blob_signed_backend_returns_404(self, http_requests):
        storage = SignedURLBlobStorage(
            "teststorage", ACCOUNT_KEY, "files", transport=make_transport(http_requests, status_code=404)
        )

        response = _download_with(storage, STORED_URL)

        assert response.status_code == 404
        (get,) = http_requests
        assert get.url.path == "/files/images/u1/a.png"


class TestDelete:
    def test_delete_own_file_returns_204(self, client, mock_storage):
        response = client.request("DELETE", "/api/files", json={"filepath": STORED_URL}, headers=USER)

        assert response.status_code == 204
        mock_storage.delete_file.assert_awaited_once_with(
            UserContext(id="u1"), StoredFile(filepath=STORED_URL)
        )

    def test_delete_other_users_file_returns_403(self, client, mock_storage):
        mock_storage.delete_file.side_effect = StorageAuthorizationError(
            "delete", "files", "images/u2/a.png", "user id not found in blob path"
        )

        response = client.request(
            "DELETE",
            "/api/files",
            json={"filepath": "https://teststorage.blob.core.windows.net/files/images/u2/a.png"},
            headers=USER,
        )

        assert response.status_code == 403


class TestAvatar:
    def test_avatar_upload_returns_url_and_metadata(self, client):
        client.images.process_avatar.return_value = AvatarResult(
            url=STORED_URL, metadata=ImageMetadata(type="png", width=250, height=250)
        )

        files = {"file": ("me.jpg", io.BytesIO(b"raw-image"), "image/jpeg")}
        response = client.post("/api/files/avatar", files=files, headers=USER)

        assert response.status_code == 200
        assert response.json() == {
            "url": STORED_URL,
            "metadata": {"type": "png", "width": 250, "height": 250},
        }
        client.images.process_avatar.assert_awaited_once_with(
            user_id="u1", buffer=b"raw-image", file_name="avatar.png"
        )

    def test_avatar_invalid_image_returns_400(self, client):
        client.images.process_avatar.side_effect = ImageProcessingError("unsupported image format")

        files = {"file": ("me.txt", io.BytesIO(b"text"), "text/plain")}
        response = client.post("/api/files/avatar", files=files, headers=USER)

        assert response.status_code == 400
        assert response.json()["detail"] == "unsupported image format"
