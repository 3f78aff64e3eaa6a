"""HTTP calls made outside the blob SDK: remote fetches and signed-URL access.

No timeout is applied here; callers that need a latency bound impose it.
"""

from __future__ import annotations

import asyncio
import os
from typing import AsyncIterator

import httpx

FILE_CHUNK_SIZE = 4 * 1024 * 1024


def _client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=None, follow_redirects=True, transport=transport)


async def fetch_bytes(url: str, *, transport: httpx.AsyncBaseTransport | None = None) -> bytes:
    """GET ``url`` and return the whole body."""
    async with _client(transport) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.content


async def open_url_stream(
    url: str, *, transport: httpx.AsyncBaseTransport | None = None
) -> AsyncIterator[bytes]:
    """GET ``url`` and return its body as a single-pass async byte iterator.

    The request is sent and its status checked before returning, so HTTP
    errors surface here rather than on first iteration.
    """
    client = _client(transport)
    try:
        response = await client.send(client.build_request("GET", url), stream=True)
        if response.is_error:
            await response.aclose()
        response.raise_for_status()
    except BaseException:
        await client.aclose()
        raise
    return _iter_response(client, response)


async def _iter_response(client: httpx.AsyncClient, response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    finally:
        await response.aclose()
        await client.aclose()


async def _iter_file(path: str) -> AsyncIterator[bytes]:
    with open(path, "rb") as fh:
        while chunk := await asyncio.to_thread(fh.read, FILE_CHUNK_SIZE):
            yield chunk


async def put_blob(
    url: str,
    content: bytes,
    *,
    content_type: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Upload ``content`` as a block blob through a write-grant URL."""
    headers = {"x-ms-blob-type": "BlockBlob", "Content-Type": content_type}
    async with _client(transport) as client:
        response = await client.put(url, content=content, headers=headers)
        response.raise_for_status()


async def put_blob_from_file(
    url: str,
    local_path: str,
    *,
    content_type: str,
    size: int | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Stream a local file to a write-grant URL without reading it into memory."""
    if size is None:
        size = os.stat(local_path).st_size
    headers = {
        "x-ms-blob-type": "BlockBlob",
        "Content-Type": content_type,
        "Content-Length": str(size),
    }
    async with _client(transport) as client:
        response = await client.put(url, content=_iter_file(local_path), headers=headers)
        response.raise_for_status()


__all__ = ["fetch_bytes", "open_url_stream", "put_blob", "put_blob_from_file"]
