"""Result artifact download with a temp-copy fallback tier."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

from ..errors import DownloadFailureError
from ..models import Artifact, LocalArtifact
from .downloads import stream_to_file
from .temp_files import remove_quietly, scoped_temp_path

logger = logging.getLogger(__name__)

_URL_KEYS = ("url", "image_url", "output_url", "output")
_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(slots=True)
class ResultMaterializer:
    """Persist provider artifacts under ``results_dir``.

    Downloads go straight to the destination first. When that hangs past
    ``timeout_seconds`` or fails, the artifact is fetched again into a
    scoped temp file under ``cache_dir`` and copied over.
    """

    results_dir: Path
    cache_dir: Path
    timeout_seconds: float = 60.0
    default_extension: str = "png"
    log: logging.Logger = field(default_factory=lambda: logger)

    async def materialize(self, artifact: Artifact, *, stem: str = "result") -> LocalArtifact:
        source = resolve_artifact_url(artifact.output)
        self.results_dir.mkdir(parents=True, exist_ok=True)

        if source.startswith("data:"):
            destination = self._write_inline(source, stem)
        else:
            destination = self._destination(stem, _extension_from_url(source))
            await self._download(source, destination)

        return self._verify(destination)

    async def _download(self, url: str, destination: Path) -> None:
        try:
            await asyncio.wait_for(
                self._stream_to(url, destination), timeout=self.timeout_seconds
            )
            _require_content(destination, url)
            return
        except asyncio.CancelledError:
            remove_quietly(destination)
            raise
        except Exception as exc:
            remove_quietly(destination)
            self.log.warning(
                "materializer.primary.failed",
                extra={"url": url, "destination": str(destination), "error": repr(exc)},
            )
            primary_error: Exception = exc

        try:
            await self._download_via_temp(url, destination)
        except Exception as exc:
            remove_quietly(destination)
            self.log.error(
                "materializer.fallback.failed",
                extra={"url": url, "primary_error": repr(primary_error), "error": repr(exc)},
            )
            raise DownloadFailureError(
                f"Failed to download result from {url}: {str(exc) or type(exc).__name__}"
            ) from exc

    async def _download_via_temp(self, url: str, destination: Path) -> None:
        with scoped_temp_path(self.cache_dir, "materialize", destination.suffix) as temp_path:
            await asyncio.wait_for(self._stream_to(url, temp_path), timeout=self.timeout_seconds)
            _require_content(temp_path, url)
            payload = temp_path.read_bytes()
            destination.write_bytes(payload)
        self.log.info(
            "materializer.fallback.succeeded",
            extra={"url": url, "destination": str(destination), "size_bytes": len(payload)},
        )

    async def _stream_to(self, url: str, target: Path) -> str:
        return await stream_to_file(url, target, timeout_seconds=self.timeout_seconds)

    def _write_inline(self, uri: str, stem: str) -> Path:
        header, sep, payload = uri.partition(",")
        if not sep or not payload or not header.endswith(";base64"):
            raise DownloadFailureError("Inline artifact is not a base64 data URI")
        mime = header[len("data:") : -len(";base64")]
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DownloadFailureError("Inline artifact payload is invalid") from exc
        destination = self._destination(stem, _EXTENSIONS.get(mime))
        destination.write_bytes(data)
        return destination

    def _destination(self, stem: str, extension: str | None) -> Path:
        suffix = (extension or self.default_extension).lstrip(".")
        return self.results_dir / f"{stem}_{uuid.uuid4().hex}.{suffix}"

    def _verify(self, destination: Path) -> LocalArtifact:
        if not destination.is_file():
            raise DownloadFailureError(f"Downloaded file is missing: {destination}")
        size = destination.stat().st_size
        if size == 0:
            remove_quietly(destination)
            raise DownloadFailureError(f"Downloaded file is empty: {destination}")
        content_type, _ = mimetypes.guess_type(destination.name)
        self.log.info(
            "materializer.stored",
            extra={"path": str(destination), "size_bytes": size},
        )
        return LocalArtifact(
            path=destination,
            content_type=content_type or "application/octet-stream",
            size_bytes=size,
        )


def resolve_artifact_url(output: Any) -> str:
    """Normalize a provider output to one URL or data URI.

    Lists resolve to their last element (providers append refined versions);
    mappings resolve through their ``url``-like fields.
    """
    value = output
    for _ in range(4):
        if isinstance(value, str):
            break
        if isinstance(value, (list, tuple)):
            if not value:
                raise DownloadFailureError("Provider output list is empty")
            value = value[-1]
        elif isinstance(value, Mapping):
            value = next((value[key] for key in _URL_KEYS if value.get(key)), None)
            if value is None:
                raise DownloadFailureError("Provider output object has no url field")
        else:
            break
    if not isinstance(value, str) or not value.strip():
        raise DownloadFailureError(f"Unsupported provider output: {output!r}"[:200])
    value = value.strip()
    if not value.startswith(("http://", "https://", "data:")):
        raise DownloadFailureError(f"Provider output is not a URL: {value[:120]}")
    return value


def _require_content(path: Path, url: str) -> None:
    if not path.is_file():
        raise DownloadFailureError(f"Download of {url} left no file")
    if path.stat().st_size == 0:
        raise DownloadFailureError(f"Download of {url} returned an empty body")


def _extension_from_url(url: str) -> str | None:
    suffix = Path(urlparse(url).path).suffix.lstrip(".").lower()
    if suffix in {"png", "jpg", "jpeg", "webp", "gif"}:
        return "jpg" if suffix == "jpeg" else suffix
    return None
