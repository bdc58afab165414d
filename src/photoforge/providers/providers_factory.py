"""Factory for provider clients."""

from ..config import ForgeConfig
from .providers_base import ProviderClient
from .providers_kie import KieClient
from .providers_replicate import ReplicateClient


def create_client(name: str, config: ForgeConfig) -> ProviderClient:
    """Instantiate provider client by name."""
    lower = name.lower()
    if lower == "replicate":
        return ReplicateClient(
            api_token=config.replicate_api_token,
            base_url=config.replicate_base_url,
            request_timeout_seconds=config.request_timeout_seconds,
            submit_timeout_seconds=config.submit_timeout_seconds,
        )
    if lower in {"kie", "kie.ai"}:
        return KieClient(
            api_key=config.kie_api_key,
            base_url=config.kie_base_url,
            request_timeout_seconds=config.request_timeout_seconds,
            submit_timeout_seconds=config.submit_timeout_seconds,
            output_format=config.kie_output_format,
            image_size=config.kie_image_size,
        )
    raise ValueError(f"Unsupported provider '{name}'")
