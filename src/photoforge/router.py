"""Operation router: the single entry point of the pipeline."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

import structlog

from .config import ForgeConfig
from .errors import ErrorKind, TransformError, UnsupportedOperationError
from .jobs.poller import JobPoller
from .media.encoder import ImageEncoder
from .media.materializer import ResultMaterializer
from .models import (
    ImmediateArtifact,
    Job,
    LocalArtifact,
    Operation,
    TransformRequest,
    TransformResult,
)
from .registry import OperationBinding, OperationRegistry
from .translators.base import ProviderRequest
from .translators.operations import primary_image

logger = structlog.get_logger(__name__)


class OperationRouter:
    """Dispatch a transform request through translator, provider, poller and materializer.

    Failures never escape as exceptions: every pipeline error is reported in
    the returned :class:`TransformResult`. Cancellation of the awaiting task
    is the one exception and propagates unchanged.
    """

    def __init__(
        self,
        registry: OperationRegistry,
        *,
        config: ForgeConfig,
        encoder: ImageEncoder,
        materializer: ResultMaterializer,
        poller: JobPoller | None = None,
    ) -> None:
        self._registry = registry
        self._config = config
        self._encoder = encoder
        self._materializer = materializer
        self._poller = poller or JobPoller()

    def supported_operations(self) -> list[Operation]:
        return self._registry.operations()

    def is_supported(self, operation: Operation | str) -> bool:
        try:
            return Operation(operation) in self._registry
        except ValueError:
            return False

    async def process(
        self,
        images: Sequence[str],
        operation: Operation | str,
        config: Mapping[str, Any] | None = None,
    ) -> TransformResult:
        with structlog.contextvars.bound_contextvars(operation=str(operation)):
            try:
                binding = self._resolve(operation)
                request = TransformRequest(
                    images=(images,) if isinstance(images, str) else tuple(images or ()),
                    operation=binding.operation,
                    config=config or {},
                )
                provider_request = binding.translator.translate(
                    primary_image(request.images), request.config
                )
                deadline = self._config.pipeline_budget(
                    binding.policy,
                    image_count=len(provider_request.image_refs),
                    upload_attempts=binding.client.upload_attempts,
                )
                try:
                    artifact = await asyncio.wait_for(
                        self._run(binding, provider_request), timeout=deadline
                    )
                except asyncio.TimeoutError:
                    logger.warning("router.deadline_exceeded", deadline_seconds=deadline)
                    return TransformResult.fail(
                        ErrorKind.TIMEOUT,
                        f"Operation did not finish within {deadline:.0f} seconds",
                    )
            except TransformError as exc:
                logger.warning("router.failed", error_kind=str(exc.kind), message=str(exc))
                return TransformResult.fail(exc.kind, str(exc))
            except Exception as exc:
                logger.exception("router.unexpected_error")
                return TransformResult.fail(
                    ErrorKind.PROVIDER_FAILURE, str(exc) or type(exc).__name__
                )

            logger.info(
                "router.completed",
                path=str(artifact.path),
                size_bytes=artifact.size_bytes,
                content_type=artifact.content_type,
            )
            return TransformResult.ok(artifact.path)

    def _resolve(self, operation: Operation | str) -> OperationBinding:
        try:
            key = Operation(operation)
        except ValueError as exc:
            raise UnsupportedOperationError(f"Unsupported operation '{operation}'") from exc
        binding = self._registry.get(key)
        if binding is None:
            raise UnsupportedOperationError(f"Operation '{key}' is not available")
        return binding

    async def _run(self, binding: OperationBinding, provider_request: ProviderRequest) -> LocalArtifact:
        encoded = await self._encoder.encode_many(provider_request.image_refs)
        submission = await binding.client.submit(provider_request, encoded)

        if isinstance(submission, ImmediateArtifact):
            artifact = submission.artifact
        else:
            job = Job(provider=binding.client.name, job_id=submission.job_id)
            logger.info("router.job.submitted", provider=job.provider, job_id=job.job_id)
            artifact = await self._poller.poll(
                job,
                binding.client.fetch_status,
                binding.client.is_terminal,
                binding.client.has_usable_output,
                binding.policy,
            )
        return await self._materializer.materialize(artifact, stem=str(binding.operation))
