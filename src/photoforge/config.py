"""Runtime configuration for PhotoForge.

Values are read from ``PHOTOFORGE_*`` environment variables. Provider
credentials are optional: an absent key is a typed ``None`` that provider
clients report as an authentication error, never a placeholder string.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .jobs.poller import PollPolicy


def _default_media_root() -> Path:
    return Path("./var/photoforge")


class ForgeConfig(BaseSettings):
    """Pydantic settings container for the orchestration layer."""

    model_config = SettingsConfigDict(env_prefix="PHOTOFORGE_", extra="ignore")

    replicate_api_token: SecretStr | None = Field(
        default=None,
        description="API token for the Replicate predictions protocol.",
    )
    kie_api_key: SecretStr | None = Field(
        default=None,
        description="API key for the Kie.ai upload-and-invoke protocol.",
    )
    replicate_base_url: str = Field(
        default="https://api.replicate.com/v1",
        description="Base URL of the Replicate REST API.",
    )
    kie_base_url: str = Field(
        default="https://api.kie.ai/api/v1",
        description="Base URL of the Kie.ai REST API.",
    )
    media_root: Path = Field(
        default_factory=_default_media_root,
        description="Root directory for materialized results and transient files.",
    )
    results_dirname: str = Field(default="results", min_length=1)
    cache_dirname: str = Field(default="cache", min_length=1)
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=0.1,
        description="Timeout applied to status, upload and metadata requests.",
    )
    submit_timeout_seconds: float = Field(
        default=120.0,
        ge=0.1,
        description="Timeout applied to job submission requests.",
    )
    download_timeout_seconds: float = Field(
        default=60.0,
        ge=0.1,
        description="Per-tier timeout for result downloads.",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Base delay between poll attempts.",
    )
    total_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Override for the end-to-end deadline of one process call.",
    )
    kie_output_format: str = Field(default="jpeg", pattern="^(png|jpeg)$")
    kie_image_size: str = Field(default="auto", min_length=1)

    @property
    def results_dir(self) -> Path:
        return self.media_root / self.results_dirname

    @property
    def cache_dir(self) -> Path:
        return self.media_root / self.cache_dirname

    def ensure_directories(self) -> None:
        self.results_dir.mkdir(parents=True, exist_ok=True)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def pipeline_budget(
        self,
        policy: "PollPolicy",
        *,
        image_count: int = 1,
        upload_attempts: int = 0,
    ) -> float:
        """Return the worst-case latency of one call under ``policy``.

        Every stage enforces its own timeout, so the bound is their sum. Each
        input image may cost one encoder download plus ``upload_attempts``
        upload requests. After that come submission, every poll sleep with
        its status request, and both result download tiers.
        """

        if self.total_timeout_seconds is not None:
            return self.total_timeout_seconds
        per_image = self.download_timeout_seconds + upload_attempts * self.request_timeout_seconds
        polling = policy.worst_case_seconds + policy.max_attempts * self.request_timeout_seconds
        return (
            image_count * per_image
            + self.submit_timeout_seconds
            + polling
            + 2 * self.download_timeout_seconds
        )


__all__ = ["ForgeConfig"]
