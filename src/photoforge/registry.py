"""Explicit operation bindings assembled at the composition root."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from .config import ForgeConfig
from .jobs.poller import PollPolicy
from .models import Operation
from .providers.providers_base import ProviderClient
from .providers.providers_factory import create_client
from .translators.base import ConfigTranslator
from .translators.operations import TRANSLATORS

STANDARD_POLICY = PollPolicy(max_attempts=60, interval_seconds=2.0)
UPSCALE_POLICY = PollPolicy(max_attempts=90, interval_seconds=2.0)
PROMPT_POLICY = PollPolicy(max_attempts=30, interval_seconds=2.0)
KIE_POLICY = PollPolicy(
    max_attempts=60, interval_seconds=2.0, backoff_factor=1.2, max_interval_seconds=10.0
)

# operation -> (provider, poll policy)
DEFAULT_ROUTES: Mapping[Operation, tuple[str, PollPolicy]] = {
    Operation.TRANSFORM: ("replicate", PROMPT_POLICY),
    Operation.GHIBLIFY: ("replicate", PROMPT_POLICY),
    Operation.REMOVE_OBJECT: ("replicate", STANDARD_POLICY),
    Operation.REMOVE_BACKGROUND: ("replicate", STANDARD_POLICY),
    Operation.ENHANCE: ("replicate", STANDARD_POLICY),
    Operation.UPSCALE: ("replicate", UPSCALE_POLICY),
    Operation.POP_FIGURE: ("replicate", PROMPT_POLICY),
    Operation.PIXEL_ART_GAMER: ("replicate", PROMPT_POLICY),
    Operation.REPLACE_BACKGROUND: ("kie", KIE_POLICY),
    Operation.STYLE_TRANSFER: ("kie", KIE_POLICY),
    Operation.VIRTUAL_TRY_ON: ("kie", KIE_POLICY),
    Operation.PROFESSIONAL_HEADSHOTS: ("kie", KIE_POLICY),
}

# Operations whose translator emits structured parameter requests.
PARAMETER_OPERATIONS = frozenset(
    {Operation.REMOVE_BACKGROUND, Operation.ENHANCE, Operation.UPSCALE}
)


@dataclass(slots=True, frozen=True)
class OperationBinding:
    """Everything the router needs to execute one operation."""

    operation: Operation
    translator: ConfigTranslator
    client: ProviderClient
    policy: PollPolicy


class OperationRegistry:
    """Read-only lookup of operation bindings."""

    def __init__(self, bindings: Iterable[OperationBinding]) -> None:
        self._bindings: dict[Operation, OperationBinding] = {}
        for binding in bindings:
            if binding.operation in self._bindings:
                raise ValueError(f"Operation '{binding.operation}' is bound twice")
            if binding.operation in PARAMETER_OPERATIONS and not binding.client.supports_parameter_requests:
                raise ValueError(
                    f"Provider '{binding.client.name}' cannot serve structured operation "
                    f"'{binding.operation}'"
                )
            self._bindings[binding.operation] = binding

    def get(self, operation: Operation) -> OperationBinding | None:
        return self._bindings.get(operation)

    def operations(self) -> list[Operation]:
        return list(self._bindings)

    def __contains__(self, operation: object) -> bool:
        return operation in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)


def build_registry(
    config: ForgeConfig,
    *,
    clients: Mapping[str, ProviderClient] | None = None,
    routes: Mapping[Operation, tuple[str, PollPolicy]] | None = None,
) -> OperationRegistry:
    """Bind every routed operation to its translator, client and poll policy.

    ``clients`` overrides provider instances by name; missing names are
    created from ``config``. Poll intervals follow
    ``config.poll_interval_seconds``.
    """
    resolved: dict[str, ProviderClient] = dict(clients or {})
    bindings = []
    for operation, (provider, policy) in (routes or DEFAULT_ROUTES).items():
        if provider not in resolved:
            resolved[provider] = create_client(provider, config)
        if config.poll_interval_seconds != policy.interval_seconds:
            policy = policy.scaled(config.poll_interval_seconds)
        bindings.append(
            OperationBinding(
                operation=operation,
                translator=TRANSLATORS[operation],
                client=resolved[provider],
                policy=policy,
            )
        )
    return OperationRegistry(bindings)


__all__ = [
    "DEFAULT_ROUTES",
    "KIE_POLICY",
    "OperationBinding",
    "OperationRegistry",
    "PROMPT_POLICY",
    "STANDARD_POLICY",
    "UPSCALE_POLICY",
    "build_registry",
]
