"""File-backed store for model identifiers and their version history.

The whole registry is loaded when a :class:`ModelRegistry` is created and
rewritten in full after every mutation. Known limitations:

* The file is overwritten in place. A crash in the middle of a write can
  leave a truncated document behind, which the next load reports as a
  :class:`~docintel_registry.errors.PersistenceError`.
* There is no file locking. Two processes working on the same file race and
  the last writer wins; updates made by the other process are lost.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from ..errors import ModelNotFoundError, PersistenceError, VersionNotFoundError
from .models import ModelRecord, RegistrySnapshot, VersionRecord, utcnow

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_FILE = "model-registry.json"
DEFAULT_VERSION = "1.0"

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ModelRegistry:
    """Durable mapping of model names to versioned model identifiers.

    Every read returns a copy; callers never hold a live record. Mutations
    are applied to a copy of the mapping, written to disk and only then
    committed in memory, so a failed write leaves the registry as it was.
    """

    def __init__(
        self,
        path: str | Path = DEFAULT_REGISTRY_FILE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.path = Path(path)
        self._clock = clock or utcnow
        self._models: Dict[str, ModelRecord] = self._load()

    # ------------------------------------------------------------------
    # Persistence
    def _load(self) -> Dict[str, ModelRecord]:
        if not self.path.exists():
            logger.debug("No registry at %s, starting empty", self.path)
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise PersistenceError(
                f"Model registry {self.path} is not valid UTF-8: {exc}", self.path
            ) from exc
        except OSError as exc:
            raise PersistenceError(
                f"Could not read model registry {self.path}: {exc}", self.path
            ) from exc
        if not raw.strip():
            raise PersistenceError(f"Model registry {self.path} is empty", self.path)
        try:
            snapshot = RegistrySnapshot.from_json(raw)
        except ValidationError as exc:
            raise PersistenceError(
                f"Model registry {self.path} is malformed: {exc}", self.path
            ) from exc
        logger.debug("Loaded %d model(s) from %s", len(snapshot), self.path)
        return dict(snapshot.root)

    def _write(self, models: Dict[str, ModelRecord]) -> None:
        document = RegistrySnapshot(models).to_json()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(document, encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(
                f"Could not write model registry {self.path}: {exc}", self.path
            ) from exc
        logger.debug("Saved %d model(s) to %s", len(models), self.path)

    def _commit(self, models: Dict[str, ModelRecord]) -> None:
        self._write(models)
        self._models = models

    def _working_copy(self) -> Dict[str, ModelRecord]:
        return {name: rec.model_copy(deep=True) for name, rec in self._models.items()}

    def save(self) -> None:
        """Write the full registry to :attr:`path`."""
        self._write(self._models)

    def reload(self) -> None:
        """Discard in-memory state and re-read the registry file."""
        self._models = self._load()

    # ------------------------------------------------------------------
    # Lookups
    def _record(self, name: str) -> ModelRecord:
        record = self._models.get(name)
        if record is None:
            raise ModelNotFoundError(name)
        return record

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)

    def get_model(self, name: str) -> ModelRecord:
        """Return a copy of the record registered under ``name``."""
        return self._record(name).model_copy(deep=True)

    def models(self) -> List[ModelRecord]:
        """Return copies of all records in registration order."""
        return [rec.model_copy(deep=True) for rec in self._models.values()]

    def get_model_id(self, name: str, version: Optional[str] = None) -> str:
        """Resolve ``name`` to a model id.

        Without ``version`` the active model id is returned; otherwise the id
        registered under that version label.
        """
        record = self._record(name)
        if not version:
            return record.current_model_id
        found = record.find_version(version)
        if found is None:
            raise VersionNotFoundError(name, version)
        return found.model_id

    # ------------------------------------------------------------------
    # Mutations
    def register(
        self,
        name: str,
        model_id: str,
        description: str = "",
        version: str = DEFAULT_VERSION,
    ) -> VersionRecord:
        """Record ``model_id`` as the newest, active version of ``name``.

        ``version`` is only honoured when ``name`` is new. Once a model exists
        its labels are always ``"<number of versions + 1>.0"``.
        """
        if not name:
            raise ValueError("model name must be a non-empty string")
        if not model_id:
            raise ValueError("model id must be a non-empty string")

        now = self._clock()
        models = self._working_copy()
        record = models.get(name)
        if record is not None:
            version = record.next_version_label()
        entry = VersionRecord(
            version=version or DEFAULT_VERSION,
            model_id=model_id,
            description=description or "",
            created_at=now,
        )
        if record is None:
            models[name] = ModelRecord(
                model_name=name,
                current_model_id=model_id,
                created_at=now,
                updated_at=now,
                versions=[entry],
            )
        else:
            record.versions.append(entry)
            record.current_model_id = model_id
            record.updated_at = now

        self._commit(models)
        logger.info(
            "Model '%s' version %s registered with ID: %s",
            name,
            entry.version,
            model_id,
        )
        return entry.model_copy()

    def set_active_version(self, name: str, version: str) -> VersionRecord:
        """Make the model id registered as ``version`` the active one."""
        self._record(name)
        models = self._working_copy()
        record = models[name]
        found = record.find_version(version)
        if found is None:
            raise VersionNotFoundError(name, version)
        record.current_model_id = found.model_id
        record.updated_at = self._clock()

        self._commit(models)
        logger.info(
            "Set active version of '%s' to %s (Model ID: %s)",
            name,
            version,
            found.model_id,
        )
        return found.model_copy()

    # ------------------------------------------------------------------
    # Reporting
    def list_models(self) -> str:
        """Render a human-readable report of every model and version."""
        if not self._models:
            return "No models registered."

        lines = ["=== Registered Models ===", ""]
        for record in self._models.values():
            lines.append(f"Model: {record.model_name}")
            lines.append(f"  Current Model ID: {record.current_model_id}")
            lines.append(f"  Created: {_fmt(record.created_at)}")
            lines.append(f"  Updated: {_fmt(record.updated_at)}")
            lines.append("  Versions:")
            for entry in record.versions:
                marker = " (ACTIVE)" if record.is_active(entry) else ""
                lines.append(f"    - v{entry.version}{marker}")
                lines.append(f"      Model ID: {entry.model_id}")
                if entry.description:
                    lines.append(f"      Description: {entry.description}")
                lines.append(f"      Created: {_fmt(entry.created_at)}")
            lines.append("")
        return "\n".join(lines)


def _fmt(value: datetime) -> str:
    return f"{value.strftime(_TIMESTAMP_FORMAT)} UTC"
