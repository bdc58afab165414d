"""Abstract provider client definition and shared HTTP error mapping."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Sequence

import httpx
from pydantic import SecretStr

from ..errors import AuthError, ProviderFailureError, RateLimitedError
from ..models import EncodedImage, JobPhase, JobStatus, Submission
from ..translators.base import ProviderRequest


class ProviderClient(ABC):
    """Base interface for provider protocols."""

    name: ClassVar[str]
    supports_parameter_requests: ClassVar[bool] = True

    @abstractmethod
    async def submit(self, request: ProviderRequest, images: Sequence[EncodedImage]) -> Submission:
        """Start a job; ``images`` are encoded in the order of ``request.image_refs``."""

    @abstractmethod
    async def fetch_status(self, job_id: str) -> JobStatus:
        """Fetch one status snapshot for a pending job."""

    @property
    def upload_attempts(self) -> int:
        """Upper bound of upload requests spent per input image before submission."""
        return 0

    def is_terminal(self, status: JobStatus) -> bool:
        return status.phase is not JobPhase.PENDING

    def has_usable_output(self, status: JobStatus) -> bool:
        return status.phase is JobPhase.SUCCEEDED and has_output(status.output)


def has_output(output: Any) -> bool:
    if isinstance(output, str):
        return bool(output.strip())
    if isinstance(output, (list, tuple, dict)):
        return bool(output)
    return output is not None


def require_credential(secret: SecretStr | None, provider: str) -> str:
    """Return the credential value or raise ``AuthError`` without touching the network."""
    value = secret.get_secret_value().strip() if secret is not None else ""
    if not value:
        raise AuthError(f"{provider} API credential is not configured")
    return value


def raise_for_provider_status(response: httpx.Response, *, provider: str) -> None:
    """Map a non-2xx provider response onto the error hierarchy."""
    status = response.status_code
    if 200 <= status < 300:
        return
    detail = extract_error_message(response)
    if status in (401, 403):
        raise AuthError(f"{provider} rejected the credential (status={status}): {detail}")
    if status == 429:
        raise RateLimitedError(f"{provider} rate limit exceeded: {detail}")
    if status == 402:
        raise ProviderFailureError(f"{provider} account has insufficient credits: {detail}")
    raise ProviderFailureError(
        f"{provider} request failed (status={status}): {detail}",
        transient=status >= 500,
    )


def extract_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(data, dict):
        for key in ("detail", "error", "msg", "message", "title"):
            value = data.get(key)
            if isinstance(value, dict):
                value = value.get("message") or value.get("msg")
            if isinstance(value, str) and value.strip():
                return value.strip()
    return str(data)[:500]


def json_body(response: httpx.Response, *, provider: str) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise ProviderFailureError(f"{provider} returned a non-JSON response") from exc
    if not isinstance(data, dict):
        raise ProviderFailureError(f"{provider} returned an unexpected response shape")
    return data


def first_present(data: Any, *paths: str) -> Any:
    """Return the first non-empty value found under dotted ``paths``."""
    for path in paths:
        value: Any = data
        for key in path.split("."):
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(key)
        if has_output(value):
            return value
    return None
