"""Pytest configuration and fixtures."""

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

ACCOUNT_NAME = "teststorage"
ACCOUNT_KEY = base64.b64encode(b"test-shared-account-key").decode()
CONTAINER = "files"


def make_transport(requests: list, status_code: int = 201, content: bytes = b"") -> httpx.MockTransport:
    """MockTransport that records every request (body read) and returns a fixed response."""

    async def handler(request: httpx.Request) -> httpx.Response:
        await request.aread()
        requests.append(request)
        return httpx.Response(status_code, content=content)

    return httpx.MockTransport(handler)


@pytest.fixture
def fake_azure(monkeypatch):
    """Replace the async BlobServiceClient with mocks and record constructions."""
    blob = MagicMock()
    blob.upload_blob = AsyncMock()
    downloader = MagicMock()
    downloader.chunks.return_value = "chunk-iterator"
    blob.download_blob = AsyncMock(return_value=downloader)

    container = MagicMock()
    container.container_name = CONTAINER
    container.exists = AsyncMock(return_value=True)
    container.create_container = AsyncMock()
    container.delete_blob = AsyncMock()
    container.get_blob_client.return_value = blob

    service = MagicMock()
    service.get_container_client.return_value = container
    service.close = AsyncMock()

    constructed = []

    def fake_service_client(account_url, credential):
        constructed.append((account_url, credential))
        return service

    monkeypatch.setattr("filestore.storage.clients.BlobServiceClient", fake_service_client)

    return SimpleNamespace(
        service=service,
        container=container,
        blob=blob,
        downloader=downloader,
        constructed=constructed,
    )


@pytest.fixture
def http_requests():
    """Requests captured by make_transport."""
    return []


@pytest.fixture
def mock_storage():
    """Create a mock storage backend."""
    storage = MagicMock()
    storage.save_buffer = AsyncMock(return_value="https://teststorage.blob.core.windows.net/files/images/u1/a.png")
    storage.save_url = AsyncMock()
    storage.get_url = AsyncMock()
    storage.delete_file = AsyncMock()
    storage.upload_local_file = AsyncMock()
    storage.open_stream = AsyncMock()
    storage.close = AsyncMock()
    return storage
