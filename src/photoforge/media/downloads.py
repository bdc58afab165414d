"""Streaming HTTP downloads to local files."""

from __future__ import annotations

from pathlib import Path

import httpx

from ..errors import DownloadFailureError

CHUNK_SIZE = 256 * 1024


async def stream_to_file(url: str, target: Path, *, timeout_seconds: float) -> str:
    """Stream ``url`` into ``target`` and return the response content type.

    Raises :class:`DownloadFailureError` for non-2xx responses; transport
    errors propagate as ``httpx.HTTPError``.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    async with httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True) as client:
        async with client.stream("GET", url) as response:
            if not 200 <= response.status_code < 300:
                raise DownloadFailureError(
                    f"Download of {url} failed with status {response.status_code}"
                )
            with target.open("wb") as sink:
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    sink.write(chunk)
            return response.headers.get("Content-Type", "")
