"""Scripted stand-ins for ``httpx.AsyncClient`` used across the suites."""

from __future__ import annotations

import base64
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

PNG_BASE64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMB/kwL7ZkAAAAASUVORK5CYII="
PNG_BYTES = base64.b64decode(PNG_BASE64)
PNG_DATA_URI = f"data:image/png;base64,{PNG_BASE64}"


class DummyHTTPResponse:
    def __init__(
        self,
        status_code: int,
        json_data: Any = None,
        text: str = "",
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self._json_data = json_data
        self.text = text
        self.content = content or b""
        self.headers = headers or {}
        self.reason_phrase = ""

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("No JSON data")
        return self._json_data

    async def aiter_bytes(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        if self.content:
            yield self.content


class HTTPRecorder:
    """Queues responses per verb and records every call made through it."""

    def __init__(
        self,
        *,
        post: list[Any] | None = None,
        get: list[Any] | None = None,
        stream: list[Any] | None = None,
    ) -> None:
        self.post_queue = list(post or [])
        self.get_queue = list(get or [])
        self.stream_queue = list(stream or [])
        self.calls: list[tuple[str, str, Any]] = []
        self.client_kwargs: list[dict[str, Any]] = []

    def factory(self, *args: Any, **kwargs: Any) -> "DummyAsyncClient":
        self.client_kwargs.append(kwargs)
        return DummyAsyncClient(self)

    def urls(self, method: str | None = None) -> list[str]:
        return [url for verb, url, _ in self.calls if method is None or verb == method]

    def payloads(self, method: str = "POST") -> list[Any]:
        return [payload for verb, _, payload in self.calls if verb == method]

    @staticmethod
    def _next(queue: list[Any], label: str) -> DummyHTTPResponse:
        if not queue:
            raise RuntimeError(f"No {label} responses queued")
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class DummyAsyncClient:
    def __init__(self, recorder: HTTPRecorder) -> None:
        self._recorder = recorder

    async def __aenter__(self) -> "DummyAsyncClient":  # pragma: no cover - helper
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:  # pragma: no cover - helper
        return None

    async def post(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
        data: Any = None,
    ) -> DummyHTTPResponse:
        self._recorder.calls.append(("POST", url, {"json": json, "headers": headers or {}}))
        return self._recorder._next(self._recorder.post_queue, "post")

    async def get(self, url: str, headers: dict[str, str] | None = None) -> DummyHTTPResponse:
        self._recorder.calls.append(("GET", url, {"headers": headers or {}}))
        return self._recorder._next(self._recorder.get_queue, "get")

    @asynccontextmanager
    async def stream(self, method: str, url: str, **kwargs: Any) -> AsyncIterator[DummyHTTPResponse]:
        self._recorder.calls.append(("STREAM", url, None))
        yield self._recorder._next(self._recorder.stream_queue, "stream")


def install_httpx(monkeypatch, recorder: HTTPRecorder) -> HTTPRecorder:
    monkeypatch.setattr("httpx.AsyncClient", recorder.factory)
    return recorder
