"""Configuration translators: operation config bag to provider request."""

from .base import (
    ConfigTranslator,
    MultiImageRequest,
    ParameterRequest,
    ProviderRequest,
    SingleImageRequest,
)
from .operations import TRANSLATORS, get_translator, translate

__all__ = [
    "ConfigTranslator",
    "MultiImageRequest",
    "ParameterRequest",
    "ProviderRequest",
    "SingleImageRequest",
    "TRANSLATORS",
    "get_translator",
    "translate",
]
