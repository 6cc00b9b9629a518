from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from core.config import Config, StoreConfig
from core.database import (
    AggregateRecord,
    PooledAggregateStore,
    SQLiteAggregateStore,
    create_store,
)
from core.errors import StorageError
from sentiment.histogram import BUCKET_COLUMNS


def test_insert_then_get_by_id_round_trips(any_store):
    counts = [0, 1, 0, 0, 0, 1, 0, 0, 0, 1, 0]

    record_id = any_store.insert("Launch week", counts)
    record = any_store.get_by_id(record_id)

    assert isinstance(record, AggregateRecord)
    assert record.id == record_id
    assert record.project_title == "Launch week"
    assert list(record.histogram) == counts
    assert record.total == 3


def test_unknown_id_is_none(any_store):
    assert any_store.get_by_id(9999) is None


def test_ids_are_unique_and_increasing(any_store):
    ids = [any_store.insert(f"run {i}", [i] * 11) for i in range(3)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_row_shape_uses_bucket_columns(any_store):
    record_id = any_store.insert("Shape", list(range(11)))
    row = any_store.get_by_id(record_id).to_row()

    assert list(row) == ["id", "project_title", *BUCKET_COLUMNS]
    assert row["bin_n1_0"] == 0
    assert row["bin_0_0"] == 5
    assert row["bin_p1_0"] == 10


def test_blank_title_falls_back_to_default(any_store):
    record_id = any_store.insert("   ", [0] * 11)
    assert any_store.get_by_id(record_id).project_title == "New Analysis"


def test_insert_rejects_malformed_histogram(any_store):
    with pytest.raises(ValueError):
        any_store.insert("bad", [1, 2, 3])


def test_concurrent_inserts_get_distinct_ids(any_store):
    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(lambda i: any_store.insert(f"t{i}", [1] * 11), range(40)))

    assert len(set(ids)) == 40
    assert all(any_store.get_by_id(i) is not None for i in ids)


def test_sqlite_store_persists_across_instances(tmp_path):
    db_path = tmp_path / "persist.db"
    with SQLiteAggregateStore(db_path) as store:
        record_id = store.insert("kept", [2] * 11)

    with SQLiteAggregateStore(db_path) as reopened:
        assert reopened.get_by_id(record_id).total == 22


def test_operations_before_open_raise_storage_error(tmp_path):
    store = SQLiteAggregateStore(tmp_path / "closed.db")
    with pytest.raises(StorageError):
        store.insert("x", [0] * 11)

    pooled = PooledAggregateStore(f"sqlite:///{tmp_path / 'closed-pool.db'}")
    with pytest.raises(StorageError):
        pooled.get_by_id(1)


def test_driver_errors_surface_as_storage_error(tmp_path):
    store = SQLiteAggregateStore(tmp_path / "dropped.db")
    store.open()
    with store.get_connection() as conn:
        conn.execute("DROP TABLE sentiment_aggregates")
        conn.commit()

    with pytest.raises(StorageError):
        store.insert("x", [0] * 11)
    with pytest.raises(StorageError):
        store.get_by_id(1)


def test_pooled_store_requires_url():
    with pytest.raises(StorageError):
        PooledAggregateStore("")


def test_create_store_selects_backend(tmp_path):
    sqlite_cfg = Config(data_dir=tmp_path)
    store = create_store(sqlite_cfg)
    assert isinstance(store, SQLiteAggregateStore)
    assert store.db_path == tmp_path / "db" / "pulseboard.db"

    pool_cfg = Config(
        data_dir=tmp_path,
        store=StoreConfig(backend="pool", database_url=f"sqlite:///{tmp_path / 'p.db'}"),
    )
    pooled = create_store(pool_cfg)
    assert isinstance(pooled, PooledAggregateStore)
    assert pooled.backend_name == "pool"


def test_concurrent_open_creates_schema_once(tmp_path):
    store = SQLiteAggregateStore(tmp_path / "shared.db")

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda _: store.open(), range(16)))

    record_id = store.insert("after open", [1] * 11)
    assert store.get_by_id(record_id).total == 11
    store.close()


def test_closed_store_must_be_reopened(any_store):
    record_id = any_store.insert("before close", [0] * 11)
    any_store.close()

    with pytest.raises(StorageError):
        any_store.get_by_id(record_id)

    any_store.open()
    assert any_store.get_by_id(record_id).project_title == "before close"
