"""Scoped temporary files for downloads and fallback copies."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


def unique_path(directory: Path, prefix: str, suffix: str = "") -> Path:
    """Return a collision-free path inside ``directory`` (not created)."""
    sanitized = suffix if not suffix or suffix.startswith(".") else f".{suffix}"
    return directory / f"{prefix}_{uuid.uuid4().hex}{sanitized}"


def remove_quietly(path: Path) -> None:
    """Delete ``path`` if present; failures are logged, not raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("media.temp.cleanup_failed", extra={"path": str(path), "error": str(exc)})


@contextmanager
def scoped_temp_path(directory: Path, prefix: str, suffix: str = "") -> Iterator[Path]:
    """Yield a unique temp path and delete whatever lands there on exit."""
    directory.mkdir(parents=True, exist_ok=True)
    path = unique_path(directory, prefix, suffix)
    try:
        yield path
    finally:
        remove_quietly(path)
