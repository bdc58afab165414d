"""Provider request shapes produced by configuration translators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

from pydantic import ValidationError

from ..errors import InvalidInputError
from ..models import Operation
from .options import OperationOptions


@dataclass(slots=True, frozen=True)
class SingleImageRequest:
    """Prompt-driven edit of the primary image."""

    prompt: str
    image_refs: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class MultiImageRequest:
    """Prompt-driven edit over an ordered image list; the primary subject comes first."""

    prompt: str
    image_refs: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class ParameterRequest:
    """Structured call of a dedicated model taking one image field plus parameters."""

    model: str
    image_field: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    image_refs: tuple[str, ...] = ()


ProviderRequest = SingleImageRequest | MultiImageRequest | ParameterRequest


class ConfigTranslator(ABC):
    """Turn one operation's configuration bag into a provider request."""

    operation: ClassVar[Operation]
    options_model: ClassVar[type[OperationOptions]]

    def translate(self, primary: str, config: Mapping[str, Any] | None) -> ProviderRequest:
        options = self.parse(config)
        return self.build(primary, options)

    def parse(self, config: Mapping[str, Any] | None) -> OperationOptions:
        if config is not None and not isinstance(config, Mapping):
            raise InvalidInputError("Configuration must be a mapping")
        try:
            return self.options_model.model_validate(dict(config or {}))
        except ValidationError as exc:
            raise InvalidInputError(
                f"Invalid configuration for {self.operation}: {_describe(exc)}"
            ) from exc

    @abstractmethod
    def build(self, primary: str, options: Any) -> ProviderRequest:
        """Build the request from validated options."""


def _describe(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


__all__ = [
    "ConfigTranslator",
    "MultiImageRequest",
    "ParameterRequest",
    "ProviderRequest",
    "SingleImageRequest",
]
