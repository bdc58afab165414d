"""Data structures shared across the transformation pipeline."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path
from typing import Any, Mapping

from .errors import ErrorKind


class Operation(StrEnum):
    """Closed set of transformation kinds accepted by the router."""

    TRANSFORM = "transform"
    REMOVE_BACKGROUND = "remove_background"
    ENHANCE = "enhance"
    REMOVE_OBJECT = "remove_object"
    REPLACE_BACKGROUND = "replace_background"
    STYLE_TRANSFER = "style_transfer"
    VIRTUAL_TRY_ON = "virtual_try_on"
    PROFESSIONAL_HEADSHOTS = "professional_headshots"
    POP_FIGURE = "pop_figure"
    PIXEL_ART_GAMER = "pixel_art_gamer"
    GHIBLIFY = "ghiblify"
    UPSCALE = "upscale"


class JobState(StrEnum):
    """Lifecycle of one in-flight provider invocation."""

    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class JobPhase(StrEnum):
    """Provider status normalised to a protocol-independent phase."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class TransformRequest:
    """Image references plus operation and raw configuration bag."""

    images: tuple[str, ...]
    operation: Operation
    config: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class EncodedImage:
    """Provider-ready image: MIME type and base64 payload."""

    mime_type: str
    data_base64: str
    source: str = ""

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_base64}"

    def decode(self) -> bytes:
        return base64.b64decode(self.data_base64)


@dataclass(slots=True)
class Job:
    """Remote job tracked by exactly one poll loop."""

    provider: str
    job_id: str
    state: JobState = JobState.SUBMITTED
    attempts: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True, frozen=True)
class JobStatus:
    """Single status snapshot fetched from a provider."""

    state: str
    phase: JobPhase
    output: Any = None
    error: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.phase is JobPhase.FAILED


@dataclass(slots=True, frozen=True)
class Artifact:
    """Provider result reference (URL, URL list, object or inline data)."""

    output: Any
    provider: str = ""


@dataclass(slots=True, frozen=True)
class ImmediateArtifact:
    """Submission that already carries its result."""

    artifact: Artifact


@dataclass(slots=True, frozen=True)
class PendingJob:
    """Submission that must be polled until it reaches a terminal state."""

    job_id: str


Submission = ImmediateArtifact | PendingJob


@dataclass(slots=True, frozen=True)
class LocalArtifact:
    """Materialized result whose existence on disk has been verified."""

    path: Path
    content_type: str
    size_bytes: int


@dataclass(slots=True, frozen=True)
class TransformResult:
    """Uniform outcome returned by the router."""

    success: bool
    local_artifact_path: Path | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def ok(cls, path: Path) -> "TransformResult":
        return cls(success=True, local_artifact_path=path)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "TransformResult":
        return cls(success=False, error_kind=kind, message=message)


__all__ = [
    "Operation",
    "JobState",
    "JobPhase",
    "TransformRequest",
    "EncodedImage",
    "Job",
    "JobStatus",
    "Artifact",
    "ImmediateArtifact",
    "PendingJob",
    "Submission",
    "LocalArtifact",
    "TransformResult",
]
