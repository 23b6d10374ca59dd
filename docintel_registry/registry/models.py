"""Pydantic models describing the persisted registry document."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    field_validator,
    model_validator,
)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Files written by older tooling may carry naive timestamps; they are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class VersionRecord(BaseModel):
    """One registration event for a model name."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    version: str = Field(..., alias="Version")
    model_id: str = Field(..., alias="ModelId")
    description: str = Field("", alias="Description")
    created_at: datetime = Field(default_factory=utcnow, alias="CreatedAt")

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else v

    @field_validator("created_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class ModelRecord(BaseModel):
    """Every registered version of a model name and which one is active."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_name: str = Field(..., alias="ModelName")
    current_model_id: str = Field(..., alias="CurrentModelId")
    created_at: datetime = Field(default_factory=utcnow, alias="CreatedAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="UpdatedAt")
    versions: List[VersionRecord] = Field(default_factory=list, alias="Versions")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def _active_id_is_registered(self) -> "ModelRecord":
        if not self.versions:
            raise ValueError(f"model '{self.model_name}' has no versions")
        if not any(self.is_active(v) for v in self.versions):
            raise ValueError(
                f"current model id '{self.current_model_id}' of '{self.model_name}' "
                "matches no registered version"
            )
        return self

    def find_version(self, label: str) -> Optional[VersionRecord]:
        """Return the first version labelled ``label``, if any."""
        return next((v for v in self.versions if v.version == label), None)

    def is_active(self, version: VersionRecord) -> bool:
        """Whether ``version`` points at the currently active model id."""
        return version.model_id == self.current_model_id

    @property
    def active_version(self) -> Optional[VersionRecord]:
        """The most recent version whose model id is the active one."""
        return next((v for v in reversed(self.versions) if self.is_active(v)), None)

    def next_version_label(self) -> str:
        """Label for the next registration, based on the number of versions."""
        return f"{len(self.versions) + 1}.0"


class RegistrySnapshot(RootModel[Dict[str, ModelRecord]]):
    """Root document mapping model names to their records."""

    root: Dict[str, ModelRecord] = Field(default_factory=dict)

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def to_json(self) -> str:
        """Serialize using the persisted key names, indented for humans."""
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, data: str | bytes) -> "RegistrySnapshot":
        return cls.model_validate_json(data)
