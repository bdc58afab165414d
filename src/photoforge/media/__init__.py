"""Image encoding, transient files and result materialization."""

from .encoder import ImageEncoder
from .materializer import ResultMaterializer, resolve_artifact_url
from .temp_files import scoped_temp_path

__all__ = ["ImageEncoder", "ResultMaterializer", "resolve_artifact_url", "scoped_temp_path"]
