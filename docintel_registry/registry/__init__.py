"""Model version registry: data models and the file-backed store."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .models import ModelRecord, RegistrySnapshot, VersionRecord
from .store import DEFAULT_REGISTRY_FILE, DEFAULT_VERSION, ModelRegistry

if TYPE_CHECKING:
    from ..config import RegistryConfig


def get_registry(
    path: str | Path | None = None, config: Optional["RegistryConfig"] = None
) -> ModelRegistry:
    """Construct a :class:`ModelRegistry` for this process.

    ``path`` wins when given; otherwise the location comes from ``config``
    or, failing that, from :func:`~docintel_registry.config.load_config`.
    Each call loads the registry file afresh.
    """

    if path is None:
        from ..config import load_config

        config = config or load_config()
        path = config.registry_path
    return ModelRegistry(path)


__all__ = [
    "VersionRecord",
    "ModelRecord",
    "RegistrySnapshot",
    "ModelRegistry",
    "DEFAULT_REGISTRY_FILE",
    "DEFAULT_VERSION",
    "get_registry",
]
