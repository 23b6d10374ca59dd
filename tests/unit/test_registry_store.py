"""Tests for the file-backed model registry."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from docintel_registry import (
    ModelNotFoundError,
    ModelRegistry,
    NotFoundError,
    PersistenceError,
    VersionNotFoundError,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(minutes=1)
        return current


@pytest.fixture
def registry_path(tmp_path):
    return tmp_path / "model-registry.json"


@pytest.fixture
def registry(registry_path) -> ModelRegistry:
    return ModelRegistry(registry_path, clock=FakeClock())


def test_missing_file_starts_empty(registry, registry_path):
    assert len(registry) == 0
    assert not registry_path.exists()
    assert registry.list_models() == "No models registered."


def test_first_registration_creates_record(registry):
    entry = registry.register("invoice-extractor", "model-abc123")

    assert entry.version == "1.0"
    record = registry.get_model("invoice-extractor")
    assert record.current_model_id == "model-abc123"
    assert record.created_at == record.updated_at
    assert [v.version for v in record.versions] == ["1.0"]


def test_first_registration_honours_requested_version(registry):
    entry = registry.register("receipts", "model-r1", version="0.9")
    assert entry.version == "0.9"
    assert registry.get_model_id("receipts", "0.9") == "model-r1"


def test_reregistration_numbers_by_count_and_ignores_requested_label(registry):
    registry.register("invoice-extractor", "model-1")
    registry.register("invoice-extractor", "model-2", version="7.5")
    third = registry.register("invoice-extractor", "model-3", version="1.0")

    assert third.version == "3.0"
    record = registry.get_model("invoice-extractor")
    assert [v.version for v in record.versions] == ["1.0", "2.0", "3.0"]
    assert len(registry) == 1


def test_register_makes_new_version_active(registry):
    registry.register("invoice-extractor", "model-abc123")
    first = registry.get_model("invoice-extractor")
    registry.register("invoice-extractor", "model-def456", "retrained on more data")

    record = registry.get_model("invoice-extractor")
    assert record.current_model_id == "model-def456"
    assert record.created_at == first.created_at
    assert record.updated_at > first.updated_at
    assert record.versions[1].description == "retrained on more data"


def test_register_rejects_empty_arguments(registry, registry_path):
    with pytest.raises(ValueError):
        registry.register("", "model-1")
    with pytest.raises(ValueError):
        registry.register("invoice-extractor", "")
    assert not registry_path.exists()


def test_get_model_id_lookup(registry):
    registry.register("invoice-extractor", "model-abc123")
    registry.register("invoice-extractor", "model-def456")

    assert registry.get_model_id("invoice-extractor") == "model-def456"
    assert registry.get_model_id("invoice-extractor", "") == "model-def456"
    assert registry.get_model_id("invoice-extractor", "1.0") == "model-abc123"


def test_unknown_model_raises_not_found(registry):
    with pytest.raises(ModelNotFoundError) as excinfo:
        registry.get_model_id("nonexistent-model")
    assert "nonexistent-model" in str(excinfo.value)
    assert excinfo.value.model_name == "nonexistent-model"

    with pytest.raises(NotFoundError):
        registry.set_active_version("nonexistent-model", "1.0")
    with pytest.raises(LookupError):
        registry.get_model("nonexistent-model")


def test_unknown_version_raises_without_mutating(registry, registry_path):
    registry.register("invoice-extractor", "model-abc123")
    before = registry_path.read_text()
    snapshot = registry.get_model("invoice-extractor")

    with pytest.raises(VersionNotFoundError) as excinfo:
        registry.get_model_id("invoice-extractor", "9.0")
    assert "9.0" in str(excinfo.value)
    with pytest.raises(VersionNotFoundError):
        registry.set_active_version("invoice-extractor", "9.0")

    assert registry.get_model("invoice-extractor") == snapshot
    assert registry_path.read_text() == before


def test_set_active_version(registry):
    registry.register("invoice-extractor", "model-abc123")
    registry.register("invoice-extractor", "model-def456")
    updated_before = registry.get_model("invoice-extractor").updated_at

    entry = registry.set_active_version("invoice-extractor", "1.0")

    assert entry.model_id == "model-abc123"
    assert registry.get_model_id("invoice-extractor") == registry.get_model_id(
        "invoice-extractor", "1.0"
    )
    assert registry.get_model("invoice-extractor").updated_at > updated_before


def test_reads_return_copies(registry):
    registry.register("invoice-extractor", "model-abc123")
    record = registry.get_model("invoice-extractor")
    record.current_model_id = "tampered"
    record.versions.clear()
    registry.models()[0].versions.clear()

    assert registry.get_model_id("invoice-extractor") == "model-abc123"
    assert len(registry.get_model("invoice-extractor").versions) == 1


def test_mutations_are_persisted(registry, registry_path):
    registry.register("invoice-extractor", "model-abc123")
    registry.register("invoice-extractor", "model-def456")
    registry.set_active_version("invoice-extractor", "1.0")

    data = json.loads(registry_path.read_text())
    assert data["invoice-extractor"]["CurrentModelId"] == "model-abc123"
    assert [v["Version"] for v in data["invoice-extractor"]["Versions"]] == [
        "1.0",
        "2.0",
    ]
    assert data["invoice-extractor"]["CreatedAt"].startswith("2024-01-01T09:00:00")


@pytest.mark.parametrize("content", ["", "   \n", "{not json", '{"m": {"ModelName": 1}}', "[]"])
def test_malformed_file_is_fatal(registry_path, content):
    registry_path.write_text(content)
    with pytest.raises(PersistenceError) as excinfo:
        ModelRegistry(registry_path)
    assert excinfo.value.path == registry_path


def test_failed_write_leaves_state_untouched(registry, registry_path, monkeypatch):
    registry.register("invoice-extractor", "model-abc123")

    def boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(type(registry_path), "write_text", boom)

    with pytest.raises(PersistenceError) as excinfo:
        registry.register("invoice-extractor", "model-def456")
    assert isinstance(excinfo.value.__cause__, OSError)
    assert "disk full" in str(excinfo.value)

    with pytest.raises(PersistenceError):
        registry.set_active_version("invoice-extractor", "1.0")

    record = registry.get_model("invoice-extractor")
    assert record.current_model_id == "model-abc123"
    assert len(record.versions) == 1


def test_save_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "model-registry.json"
    registry = ModelRegistry(path)
    registry.register("invoice-extractor", "model-abc123")
    assert path.exists()


def test_reload_picks_up_external_changes(registry, registry_path):
    registry.register("invoice-extractor", "model-abc123")
    other = ModelRegistry(registry_path)
    other.register("receipts", "model-r1")

    assert "receipts" not in registry
    registry.reload()
    assert "receipts" in registry


def test_list_models_report(registry):
    registry.register("invoice-extractor", "model-abc123")
    registry.register("invoice-extractor", "model-def456", "retrained on more data")

    report = registry.list_models()

    assert report.startswith("=== Registered Models ===")
    assert "Model: invoice-extractor" in report
    assert "  Current Model ID: model-def456" in report
    assert "  Created: 2024-01-01 09:00:00 UTC" in report
    assert "    - v1.0\n" in report
    assert "    - v2.0 (ACTIVE)" in report
    assert "      Description: retrained on more data" in report
    assert report.count("Description:") == 1


def test_non_utf8_file_is_fatal(registry_path):
    registry_path.write_bytes(b"\xff\xfe{")
    with pytest.raises(PersistenceError) as excinfo:
        ModelRegistry(registry_path)
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def _legacy_record(current_model_id, versions):
    return {
        "invoice-extractor": {
            "ModelName": "invoice-extractor",
            "CurrentModelId": current_model_id,
            "CreatedAt": "2024-01-01T09:00:00Z",
            "UpdatedAt": "2024-01-01T09:00:00Z",
            "Versions": versions,
        }
    }


def test_record_without_versions_is_fatal(registry_path):
    registry_path.write_text(json.dumps(_legacy_record("model-abc123", [])))
    with pytest.raises(PersistenceError, match="no versions"):
        ModelRegistry(registry_path)


def test_active_id_missing_from_history_is_fatal(registry_path):
    versions = [
        {
            "Version": "1.0",
            "ModelId": "model-abc123",
            "Description": "",
            "CreatedAt": "2024-01-01T09:00:00Z",
        }
    ]
    registry_path.write_text(json.dumps(_legacy_record("zzz", versions)))
    with pytest.raises(PersistenceError, match="matches no registered version"):
        ModelRegistry(registry_path)
