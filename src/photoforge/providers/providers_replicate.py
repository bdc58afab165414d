"""Replicate predictions protocol (create prediction, then poll by id)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import httpx
from pydantic import SecretStr

from ..errors import InvalidInputError, ProviderFailureError
from ..models import Artifact, EncodedImage, ImmediateArtifact, JobPhase, JobStatus, PendingJob, Submission
from ..translators.base import ParameterRequest, ProviderRequest
from .providers_base import (
    ProviderClient,
    has_output,
    json_body,
    raise_for_provider_status,
    require_credential,
)

logger = logging.getLogger(__name__)

# google/nano-banana, pinned for prompt-driven edits.
NANO_BANANA_VERSION = "2c8a3b5b81554aa195bde461e2caa6afacd69a66c48a64fb0e650c9789f8b8a0"

SUCCESS_STATES = frozenset({"succeeded"})
FAILURE_STATES = frozenset({"failed", "canceled"})


@dataclass(slots=True)
class ReplicateClient(ProviderClient):
    """Call Replicate predictions and report their status."""

    name = "replicate"

    api_token: SecretStr | None = None
    base_url: str = "https://api.replicate.com/v1"
    request_timeout_seconds: float = 30.0
    submit_timeout_seconds: float = 120.0
    prompt_model_version: str = NANO_BANANA_VERSION
    log: logging.Logger = field(default_factory=lambda: logger)

    async def submit(self, request: ProviderRequest, images: Sequence[EncodedImage]) -> Submission:
        token = require_credential(self.api_token, "Replicate")
        if not images:
            raise InvalidInputError("Replicate request requires at least one image")

        if isinstance(request, ParameterRequest):
            version = await self._resolve_version(request.model, token=token)
            payload_input: dict[str, Any] = {request.image_field: images[0].data_uri}
            payload_input.update(request.parameters)
            model = request.model
        else:
            version = self.prompt_model_version
            payload_input = {
                "prompt": request.prompt,
                "image_input": [image.data_uri for image in images],
                "aspect_ratio": "match_input_image",
                "output_format": "jpg",
            }
            model = "google/nano-banana"

        async with httpx.AsyncClient(timeout=self.submit_timeout_seconds) as client:
            response = await client.post(
                self._url("/predictions"),
                headers=self._headers(token),
                json={"version": version, "input": payload_input},
            )
        raise_for_provider_status(response, provider="Replicate")
        body = json_body(response, provider="Replicate")

        prediction_id = body.get("id")
        state = str(body.get("status") or "").lower()
        if state in FAILURE_STATES:
            raise ProviderFailureError(_failure_message(body, prediction_id))
        if state in SUCCESS_STATES and has_output(body.get("output")):
            return ImmediateArtifact(Artifact(output=body["output"], provider=self.name))
        if not prediction_id:
            raise ProviderFailureError("Replicate did not return a prediction id")

        self.log.info(
            "replicate.prediction.created",
            extra={"prediction_id": prediction_id, "model": model, "image_count": len(images)},
        )
        return PendingJob(job_id=str(prediction_id))

    async def fetch_status(self, job_id: str) -> JobStatus:
        token = require_credential(self.api_token, "Replicate")
        async with httpx.AsyncClient(timeout=self.request_timeout_seconds) as client:
            response = await client.get(
                self._url(f"/predictions/{job_id}"), headers=self._headers(token)
            )
        raise_for_provider_status(response, provider="Replicate")
        body = json_body(response, provider="Replicate")

        state = str(body.get("status") or "unknown").lower()
        if state in SUCCESS_STATES:
            phase = JobPhase.SUCCEEDED
        elif state in FAILURE_STATES:
            phase = JobPhase.FAILED
        else:
            phase = JobPhase.PENDING
        error = _failure_message(body, job_id) if phase is JobPhase.FAILED else None
        return JobStatus(state=state, phase=phase, output=body.get("output"), error=error, raw=body)

    async def _resolve_version(self, model: str, *, token: str) -> str:
        headers = self._headers(token)
        async with httpx.AsyncClient(timeout=self.request_timeout_seconds) as client:
            response = await client.get(self._url(f"/models/{model}"), headers=headers)
            raise_for_provider_status(response, provider="Replicate")
            latest = json_body(response, provider="Replicate").get("latest_version") or {}
            if latest.get("id"):
                return str(latest["id"])

            self.log.info("replicate.model.versions_fallback", extra={"model": model})
            response = await client.get(self._url(f"/models/{model}/versions"), headers=headers)
            raise_for_provider_status(response, provider="Replicate")
            versions = json_body(response, provider="Replicate").get("results") or []
        if not versions or not versions[0].get("id"):
            raise ProviderFailureError(f"Replicate model version not found for '{model}'")
        return str(versions[0]["id"])

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Token {token}", "Content-Type": "application/json"}


def _failure_message(body: dict[str, Any], prediction_id: Any) -> str:
    error = body.get("error")
    if isinstance(error, str) and error.strip():
        return error.strip()
    if error:
        return str(error)
    return f"Replicate prediction {prediction_id} ended with status '{body.get('status')}'"
