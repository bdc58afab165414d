"""PhotoForge: asynchronous image transformation over AI compute providers."""

from .config import ForgeConfig
from .container import build_router
from .errors import ErrorKind, TransformError
from .logging import configure_logging
from .models import Operation, TransformResult
from .router import OperationRouter

__all__ = [
    "ErrorKind",
    "ForgeConfig",
    "Operation",
    "OperationRouter",
    "TransformError",
    "TransformResult",
    "build_router",
    "configure_logging",
]
