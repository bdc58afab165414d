"""Normalize image references into provider-ready base64 payloads."""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence
from urllib.parse import unquote, urlparse

import httpx

from ..errors import DownloadFailureError, InvalidInputError
from ..models import EncodedImage
from .downloads import stream_to_file
from .temp_files import scoped_temp_path

logger = logging.getLogger(__name__)

DEFAULT_MIME = "image/jpeg"


@dataclass(slots=True)
class ImageEncoder:
    """Encode data URIs, remote URLs and local files.

    Remote references are downloaded into ``cache_dir`` first; the temp file
    is removed before :meth:`encode` returns on every path.
    """

    cache_dir: Path
    timeout_seconds: float = 60.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def encode(self, ref: str) -> EncodedImage:
        if not isinstance(ref, str) or not ref.strip():
            raise InvalidInputError("Image reference is empty")
        ref = ref.strip()

        if ref.startswith("data:"):
            return parse_data_uri(ref)
        if ref.startswith(("http://", "https://")):
            return await self._encode_remote(ref)
        return self._encode_local(ref)

    async def encode_many(self, refs: Sequence[str]) -> list[EncodedImage]:
        encoded: list[EncodedImage] = []
        for ref in refs:
            encoded.append(await self.encode(ref))
        return encoded

    async def _encode_remote(self, url: str) -> EncodedImage:
        suffix = Path(urlparse(url).path).suffix
        with scoped_temp_path(self.cache_dir, "encode", suffix) as temp_path:
            try:
                content_type = await stream_to_file(
                    url, temp_path, timeout_seconds=self.timeout_seconds
                )
            except (httpx.HTTPError, DownloadFailureError) as exc:
                raise InvalidInputError(f"Failed to load image from URL: {exc}") from exc
            try:
                payload = temp_path.read_bytes()
            except OSError as exc:
                raise InvalidInputError(f"Downloaded image is unreadable: {exc}") from exc

        if not payload:
            raise InvalidInputError(f"Image downloaded from {url} is empty")
        mime = (
            _mime_from_extension(url)
            or _normalize_content_type(content_type)
            or DEFAULT_MIME
        )
        self.log.info(
            "encoder.remote.loaded",
            extra={"url": url, "size_bytes": len(payload), "mime_type": mime},
        )
        return EncodedImage(
            mime_type=mime,
            data_base64=base64.b64encode(payload).decode("ascii"),
            source=url,
        )

    def _encode_local(self, ref: str) -> EncodedImage:
        path = Path(unquote(urlparse(ref).path)) if ref.startswith("file://") else Path(ref)
        if not path.is_file():
            raise InvalidInputError(f"Image file does not exist: {path}")
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise InvalidInputError(f"Failed to read image file {path}: {exc}") from exc
        if not payload:
            raise InvalidInputError(f"Image file is empty: {path}")
        return EncodedImage(
            mime_type=guess_mime(path.name),
            data_base64=base64.b64encode(payload).decode("ascii"),
            source=str(path),
        )


def parse_data_uri(uri: str) -> EncodedImage:
    """Parse ``data:<mime>;base64,<payload>`` into an :class:`EncodedImage`."""
    header, sep, payload = uri.partition(",")
    if not sep or not payload.strip():
        raise InvalidInputError("Invalid data URI format")
    if not header.endswith(";base64"):
        raise InvalidInputError("Data URI must carry a base64 payload")
    mime = header[len("data:") : -len(";base64")] or DEFAULT_MIME
    payload = payload.strip()
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("Data URI payload is not valid base64") from exc
    return EncodedImage(mime_type=mime, data_base64=payload, source="data-uri")


def guess_mime(name: str) -> str:
    return _mime_from_extension(name) or DEFAULT_MIME


def _mime_from_extension(name: str) -> str | None:
    mime, _ = mimetypes.guess_type(urlparse(name).path if "://" in name else name)
    if mime and mime.startswith("image/"):
        return mime
    return None


def _normalize_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    value = content_type.split(";", 1)[0].strip().lower()
    return value if value.startswith("image/") else None
