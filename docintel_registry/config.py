from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, field_validator

from .registry.store import DEFAULT_REGISTRY_FILE

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class RegistryConfig(BaseModel):
    """Where the registry file lives and how chatty the CLI is."""

    registry_path: str = DEFAULT_REGISTRY_FILE
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


def load_config(path: Optional[str] = None) -> RegistryConfig:
    """Build the registry settings for this process.

    Settings come from a YAML document: ``path`` if given, otherwise the file
    named by DOCINTEL_REGISTRY_CONFIG, otherwise ``config.yaml`` in the
    working directory. A missing file yields the defaults. A set
    DOCINTEL_REGISTRY_PATH always replaces the configured registry location.
    """

    config_path = path or os.getenv("DOCINTEL_REGISTRY_CONFIG", "config.yaml")
    data = {}
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    config = RegistryConfig(**data)

    registry_override = os.getenv("DOCINTEL_REGISTRY_PATH")
    if registry_override:
        config.registry_path = registry_override
    return config
