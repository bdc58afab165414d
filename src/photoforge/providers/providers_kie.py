"""Kie.ai upload-then-invoke protocol."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import httpx
from pydantic import SecretStr

from ..errors import (
    AuthError,
    InvalidInputError,
    ProviderFailureError,
    RateLimitedError,
    UnsupportedOperationError,
)
from ..models import Artifact, EncodedImage, ImmediateArtifact, JobPhase, JobStatus, PendingJob, Submission
from ..translators.base import ParameterRequest, ProviderRequest
from .providers_base import (
    ProviderClient,
    extract_error_message,
    first_present,
    json_body,
    raise_for_provider_status,
    require_credential,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "google/nano-banana-edit"
UPLOAD_PATHS = ("/upload", "/uploads", "/files/upload")

SUCCESS_STATES = frozenset({"completed", "succeeded", "success"})
FAILURE_STATES = frozenset({"failed", "error", "failure"})
ACCEPTED_CODES = frozenset({200, 201})

_UPLOAD_URL_FIELDS = ("url", "image_url", "upload_url", "data.url")
_JOB_ID_FIELDS = ("id", "job_id", "task_id", "data.id", "data.taskId", "data.task_id")
_SUBMIT_OUTPUT_FIELDS = ("output", "image_url", "url", "data.output")
_STATUS_OUTPUT_FIELDS = (
    "output",
    "output_url",
    "image_url",
    "url",
    "result.url",
    "result.image_url",
    "result.output",
    "data.output",
    "data.url",
)


@dataclass(slots=True)
class KieClient(ProviderClient):
    """Upload images, create a nano-banana edit task and report its status.

    Only prompt requests are accepted; structured parameter models are
    served by Replicate.
    """

    name = "kie"
    supports_parameter_requests = False

    api_key: SecretStr | None = None
    base_url: str = "https://api.kie.ai/api/v1"
    request_timeout_seconds: float = 30.0
    submit_timeout_seconds: float = 120.0
    model: str = DEFAULT_MODEL
    output_format: str = "jpeg"
    image_size: str = "auto"
    upload_paths: tuple[str, ...] = UPLOAD_PATHS
    log: logging.Logger = field(default_factory=lambda: logger)

    @property
    def upload_attempts(self) -> int:
        return len(self.upload_paths)

    async def submit(self, request: ProviderRequest, images: Sequence[EncodedImage]) -> Submission:
        if isinstance(request, ParameterRequest):
            raise UnsupportedOperationError(
                f"Kie.ai cannot run structured model '{request.model}'"
            )
        api_key = require_credential(self.api_key, "Kie.ai")
        if not images:
            raise InvalidInputError("Kie.ai request requires at least one image")

        image_urls = [await self._upload_or_inline(image, api_key=api_key) for image in images]
        payload = {
            "model": self.model,
            "input": {
                "prompt": request.prompt,
                "image_urls": image_urls,
                "output_format": self.output_format,
                "image_size": self.image_size,
            },
        }
        async with httpx.AsyncClient(timeout=self.submit_timeout_seconds) as client:
            response = await client.post(
                self._url("/jobs/createTask"), headers=self._headers(api_key), json=payload
            )
        raise_for_provider_status(response, provider="Kie.ai")
        body = json_body(response, provider="Kie.ai")
        _raise_for_body_code(body)

        output = first_present(body, *_SUBMIT_OUTPUT_FIELDS)
        if output is not None:
            self.log.info("kie.task.immediate", extra={"model": self.model})
            return ImmediateArtifact(Artifact(output=output, provider=self.name))

        job_id = first_present(body, *_JOB_ID_FIELDS)
        if job_id is None:
            message = body.get("msg") or body.get("message") or body.get("error")
            raise ProviderFailureError(
                f"Kie.ai did not return a job id: {message}" if message else "Kie.ai did not return a job id"
            )
        self.log.info(
            "kie.task.created",
            extra={"job_id": job_id, "model": self.model, "image_count": len(image_urls)},
        )
        return PendingJob(job_id=str(job_id))

    async def fetch_status(self, job_id: str) -> JobStatus:
        api_key = require_credential(self.api_key, "Kie.ai")
        async with httpx.AsyncClient(timeout=self.request_timeout_seconds) as client:
            response = await client.get(self._url(f"/jobs/{job_id}"), headers=self._headers(api_key))
        raise_for_provider_status(response, provider="Kie.ai")
        body = json_body(response, provider="Kie.ai")

        raw_state = body.get("status")
        if raw_state is None and isinstance(body.get("data"), dict):
            raw_state = body["data"].get("status") or body["data"].get("state")
        state = str(raw_state or "unknown").lower()

        if state in SUCCESS_STATES:
            phase = JobPhase.SUCCEEDED
        elif state in FAILURE_STATES:
            phase = JobPhase.FAILED
        else:
            phase = JobPhase.PENDING
            if state not in {"pending", "processing", "queued", "running", "unknown"}:
                self.log.warning("kie.status.unrecognized", extra={"job_id": job_id, "state": state})

        error = None
        if phase is JobPhase.FAILED:
            error = (
                first_present(body, "error", "message", "msg", "data.error", "data.failMsg")
                or f"Kie.ai job {job_id} ended with status '{state}'"
            )
        return JobStatus(
            state=state,
            phase=phase,
            output=first_present(body, *_STATUS_OUTPUT_FIELDS),
            error=str(error) if error is not None else None,
            raw=body,
        )

    async def _upload_or_inline(self, image: EncodedImage, *, api_key: str) -> str:
        data_uri = image.data_uri
        headers = self._headers(api_key)
        for path in self.upload_paths:
            try:
                async with httpx.AsyncClient(timeout=self.request_timeout_seconds) as client:
                    response = await client.post(self._url(path), headers=headers, json={"file": data_uri})
            except httpx.HTTPError as exc:
                self.log.info("kie.upload.attempt_failed", extra={"path": path, "error": str(exc)})
                continue
            if response.status_code in (401, 403):
                raise AuthError(
                    f"Kie.ai rejected the credential (status={response.status_code}): "
                    f"{extract_error_message(response)}"
                )
            if response.status_code == 429:
                raise RateLimitedError(f"Kie.ai rate limit exceeded: {extract_error_message(response)}")
            if not 200 <= response.status_code < 300:
                self.log.info(
                    "kie.upload.attempt_failed",
                    extra={"path": path, "status_code": response.status_code},
                )
                continue
            try:
                body = response.json()
            except ValueError:
                continue
            uploaded = first_present(body, *_UPLOAD_URL_FIELDS)
            if isinstance(uploaded, str) and not uploaded.startswith("data:"):
                self.log.info("kie.upload.succeeded", extra={"path": path})
                return uploaded

        self.log.warning(
            "kie.upload.inline_fallback",
            extra={"mime_type": image.mime_type, "paths": list(self.upload_paths)},
        )
        return data_uri

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    @staticmethod
    def _headers(api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


def _raise_for_body_code(body: dict[str, Any]) -> None:
    code = body.get("code")
    if code is None:
        return
    try:
        numeric = int(code)
    except (TypeError, ValueError):
        numeric = None
    if numeric in ACCEPTED_CODES:
        return
    message = body.get("msg") or body.get("message") or body.get("error") or "Unknown API error"
    if numeric in (401, 403):
        raise AuthError(f"Kie.ai rejected the credential (code={code}): {message}")
    if numeric == 429:
        raise RateLimitedError(f"Kie.ai rate limit exceeded: {message}")
    raise ProviderFailureError(f"Kie.ai task creation failed (code={code}): {message}")
