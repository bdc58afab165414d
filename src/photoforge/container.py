"""Composition helpers wiring the pipeline together."""

from __future__ import annotations

from typing import Any, Mapping

from .config import ForgeConfig
from .jobs.poller import JobPoller
from .media.encoder import ImageEncoder
from .media.materializer import ResultMaterializer
from .providers.providers_base import ProviderClient
from .registry import build_registry
from .router import OperationRouter


def _coerce_config(config: Mapping[str, Any] | ForgeConfig | None) -> ForgeConfig:
    if isinstance(config, ForgeConfig):
        return config
    if isinstance(config, Mapping):
        return ForgeConfig(**dict(config))
    return ForgeConfig()


def build_router(
    config: Mapping[str, Any] | ForgeConfig | None = None,
    *,
    clients: Mapping[str, ProviderClient] | None = None,
    poller: JobPoller | None = None,
) -> OperationRouter:
    """Construct an :class:`OperationRouter` with its registry and media helpers.

    ``config`` may be a ready :class:`ForgeConfig`, a mapping of its fields or
    ``None`` to read everything from ``PHOTOFORGE_*`` variables. ``clients``
    replaces provider clients by name, which is how tests inject fakes.
    """

    forge_config = _coerce_config(config)
    forge_config.ensure_directories()
    registry = build_registry(forge_config, clients=clients)
    encoder = ImageEncoder(
        cache_dir=forge_config.cache_dir,
        timeout_seconds=forge_config.download_timeout_seconds,
    )
    materializer = ResultMaterializer(
        results_dir=forge_config.results_dir,
        cache_dir=forge_config.cache_dir,
        timeout_seconds=forge_config.download_timeout_seconds,
    )
    return OperationRouter(
        registry,
        config=forge_config,
        encoder=encoder,
        materializer=materializer,
        poller=poller,
    )


__all__ = ["build_router"]
