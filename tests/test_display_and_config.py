from __future__ import annotations

import pytest

from core.config import Config
from core.errors import DatasetNotFoundError, StorageError
from sentiment.display import DatasetDisplay


def test_display_returns_persisted_row(any_store):
    record_id = any_store.insert("Embed me", [0, 0, 0, 0, 0, 4, 0, 0, 0, 0, 1])

    row = DatasetDisplay(any_store).get_display(record_id)

    assert row["id"] == record_id
    assert row["project_title"] == "Embed me"
    assert row["bin_0_0"] == 4
    assert row["bin_p1_0"] == 1


def test_display_unknown_id_is_not_found_not_zeros(any_store):
    with pytest.raises(DatasetNotFoundError) as excinfo:
        DatasetDisplay(any_store).get_display(77)

    assert excinfo.value.record_id == 77
    assert excinfo.value.to_payload()["error"] == "not_found"


def test_display_storage_failure_is_distinct_from_not_found():
    class _DownStore:
        def get_by_id(self, record_id):
            raise StorageError("Query error: connection refused")

    with pytest.raises(StorageError):
        DatasetDisplay(_DownStore()).get_display(1)


def test_config_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PULSEBOARD_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PULSEBOARD_STORE__BACKEND", "pool")
    monkeypatch.setenv("PULSEBOARD_STORE__DATABASE_URL", "mysql+mysqlconnector://u:p@db/pulse")
    monkeypatch.setenv("PULSEBOARD_INGEST__CHUNK_SIZE", "250")

    cfg = Config()

    assert cfg.data_dir == tmp_path
    assert cfg.store.backend == "pool"
    assert cfg.store.database_url.startswith("mysql+mysqlconnector://")
    assert cfg.ingest.chunk_size == 250
    assert cfg.upload_dir == tmp_path / "uploads"
    assert cfg.get("ingest.default_text_column") == "post"
    assert cfg.get("ingest.missing", "fallback") == "fallback"


def test_config_yaml_round_trip(tmp_path):
    cfg = Config(data_dir=tmp_path)
    cfg.ingest.default_project_title = "Quarterly survey"
    path = tmp_path / "settings.yaml"

    cfg.save(path)
    loaded = Config.load(path)

    assert loaded.ingest.default_project_title == "Quarterly survey"
    assert loaded.sqlite_path == tmp_path / "db" / "pulseboard.db"
