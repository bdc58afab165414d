"""Clients for the external AI compute providers."""

from .providers_base import ProviderClient
from .providers_factory import create_client
from .providers_kie import KieClient
from .providers_replicate import ReplicateClient

__all__ = ["ProviderClient", "KieClient", "ReplicateClient", "create_client"]
