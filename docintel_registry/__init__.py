"""docintel-registry: versioned identifiers for document-processing models."""

from .config import RegistryConfig, load_config
from .errors import (
    ModelNotFoundError,
    NotFoundError,
    PersistenceError,
    RegistryError,
    VersionNotFoundError,
)
from .registry import ModelRecord, ModelRegistry, VersionRecord, get_registry

__version__ = "0.1.0"
__all__ = [
    "ModelRegistry",
    "ModelRecord",
    "VersionRecord",
    "RegistryConfig",
    "load_config",
    "get_registry",
    "RegistryError",
    "NotFoundError",
    "ModelNotFoundError",
    "VersionNotFoundError",
    "PersistenceError",
]
