"""Error types raised by the model registry."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class RegistryError(Exception):
    """Base class for all registry failures."""


class NotFoundError(RegistryError, LookupError):
    """A model name or version label is not present in the registry.

    Callers typically recover from this, e.g. by asking the operator to
    register the model first.
    """

    def __init__(
        self, message: str, model_name: str, version: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.model_name = model_name
        self.version = version


class ModelNotFoundError(NotFoundError):
    """No record exists under the requested model name."""

    def __init__(self, model_name: str) -> None:
        super().__init__(f"Model '{model_name}' not found in registry", model_name)


class VersionNotFoundError(NotFoundError):
    """The model exists but has no version with the requested label."""

    def __init__(self, model_name: str, version: str) -> None:
        super().__init__(
            f"Version {version} not found for model '{model_name}'",
            model_name,
            version,
        )


class PersistenceError(RegistryError):
    """The registry file could not be read, parsed or written."""

    def __init__(self, message: str, path: str | Path) -> None:
        super().__init__(message)
        self.path = Path(path)


__all__ = [
    "RegistryError",
    "NotFoundError",
    "ModelNotFoundError",
    "VersionNotFoundError",
    "PersistenceError",
]
