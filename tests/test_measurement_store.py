"""Unit tests for the append-only measurement store."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from datastore.measurement_store import MeasurementStore
from errors import StorageFailure, WriteRateExceeded
from models.records import MEASUREMENT_GROUP, Measurement


def _measurement(date: int, temperature: float = 20.0, humidity: float = 40.0) -> Measurement:
    return Measurement(temperature=temperature, humidity=humidity, date=date)


def test_append_assigns_increasing_ids() -> None:
    store = MeasurementStore()

    first = store.append(_measurement(1_000))
    second = store.append(_measurement(2_000))

    assert first == 1
    assert second == 2


def test_query_orders_by_date_descending_and_applies_limit() -> None:
    store = MeasurementStore()
    for date in (3_000, 1_000, 5_000, 2_000, 4_000):
        store.append(_measurement(date))

    records = store.query(MEASUREMENT_GROUP, limit=3)

    assert [record.date for record in records] == [5_000, 4_000, 3_000]


def test_query_excludes_records_before_since() -> None:
    store = MeasurementStore()
    for date in (1_000, 2_000, 3_000):
        store.append(_measurement(date))

    records = store.query(MEASUREMENT_GROUP, limit=10, since=2_000)

    assert [record.date for record in records] == [3_000, 2_000]


def test_query_breaks_date_ties_by_newest_insert() -> None:
    store = MeasurementStore()
    store.append(_measurement(1_000, temperature=1.0))
    store.append(_measurement(1_000, temperature=2.0))
    store.append(_measurement(1_000, temperature=3.0))

    records = store.query(MEASUREMENT_GROUP, limit=10)

    assert [record.temperature for record in records] == [3.0, 2.0, 1.0]


def test_query_is_scoped_to_group() -> None:
    store = MeasurementStore()
    store.append(_measurement(1_000))

    assert store.query("another_group", limit=10) == []


def test_query_rejects_negative_limit() -> None:
    store = MeasurementStore()

    with pytest.raises(ValueError):
        store.query(MEASUREMENT_GROUP, limit=-1)


def test_append_persists_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "measurements.jsonl"
    store = MeasurementStore(persistence_path=path)
    store.append(_measurement(1_000, temperature=21.5, humidity=40.2))
    store.append(_measurement(2_000, temperature=22.0, humidity=41.0))

    lines = path.read_text().splitlines()
    assert json.loads(lines[0]) == {
        "id": 1,
        "group": MEASUREMENT_GROUP,
        "Temperature": 21.5,
        "Humidity": 40.2,
        "Date": 1_000,
    }

    reloaded = MeasurementStore(persistence_path=path)
    records = reloaded.query(MEASUREMENT_GROUP, limit=10)
    assert records == [
        _measurement(2_000, temperature=22.0, humidity=41.0),
        _measurement(1_000, temperature=21.5, humidity=40.2),
    ]
    assert reloaded.append(_measurement(3_000)) == 3


def test_reload_ignores_records_of_other_groups(tmp_path: Path) -> None:
    path = tmp_path / "measurements.jsonl"
    path.write_text(
        json.dumps({"id": 1, "group": "legacy", "Temperature": 1.0, "Humidity": 2.0, "Date": 5})
        + "\n"
    )

    store = MeasurementStore(persistence_path=path)

    assert store.query(MEASUREMENT_GROUP, limit=10) == []


def test_reload_skips_torn_line_and_keeps_appending(tmp_path: Path, caplog) -> None:
    path = tmp_path / "measurements.jsonl"
    store = MeasurementStore(persistence_path=path)
    store.append(_measurement(1_000))
    with path.open("a", encoding="utf-8") as handle:
        handle.write('{"id": 2, "group": "default_mea')

    with caplog.at_level(logging.WARNING):
        reloaded = MeasurementStore(persistence_path=path)
    reloaded.append(_measurement(2_000))

    assert any(getattr(record, "line_number", None) == 2 for record in caplog.records)
    again = MeasurementStore(persistence_path=path)
    assert [record.date for record in again.query(MEASUREMENT_GROUP, limit=10)] == [2_000, 1_000]


def test_append_failure_raises_storage_failure_and_stores_nothing(tmp_path: Path) -> None:
    path = tmp_path / "measurements.jsonl"
    store = MeasurementStore(persistence_path=path)
    store.append(_measurement(1_000))
    path.unlink()
    path.mkdir()

    with pytest.raises(StorageFailure):
        store.append(_measurement(2_000))

    assert [record.date for record in store.query(MEASUREMENT_GROUP, limit=10)] == [1_000]


def test_unreadable_log_raises_storage_failure(tmp_path: Path) -> None:
    path = tmp_path / "measurements.jsonl"
    path.mkdir()

    with pytest.raises(StorageFailure):
        MeasurementStore(persistence_path=path)


def test_write_ceiling_rejects_bursts() -> None:
    now = [100.0]
    store = MeasurementStore(max_writes_per_second=2, clock=lambda: now[0])

    store.append(_measurement(1_000))
    now[0] = 100.5
    store.append(_measurement(2_000))
    now[0] = 100.9
    with pytest.raises(WriteRateExceeded):
        store.append(_measurement(3_000))

    now[0] = 101.0
    store.append(_measurement(4_000))

    assert [record.date for record in store.query(MEASUREMENT_GROUP, limit=10)] == [4_000, 2_000, 1_000]


def test_write_ceiling_disabled_by_default() -> None:
    store = MeasurementStore(clock=lambda: 0.0)

    for date in range(50):
        store.append(_measurement(date))

    assert len(store.query(MEASUREMENT_GROUP, limit=100)) == 50


def test_write_history_is_not_kept_without_ceiling() -> None:
    store = MeasurementStore()

    for date in range(1_000):
        store.append(_measurement(date))

    assert len(store._recent_writes) == 0


def test_write_history_stays_within_one_second_window() -> None:
    now = [0.0]
    store = MeasurementStore(max_writes_per_second=5, clock=lambda: now[0])

    for date in range(100):
        now[0] = float(date)
        store.append(_measurement(date))

    assert len(store._recent_writes) == 1


def test_failed_sync_leaves_no_line_and_no_duplicate_id(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "measurements.jsonl"
    store = MeasurementStore(persistence_path=path)
    store.append(_measurement(1_000))

    def failing_fsync(_fd: int) -> None:
        raise OSError("device lost")

    monkeypatch.setattr("datastore.measurement_store.os.fsync", failing_fsync)
    with pytest.raises(StorageFailure, match="device lost"):
        store.append(_measurement(2_000))
    monkeypatch.undo()

    store.append(_measurement(3_000))

    ids = [json.loads(line)["id"] for line in path.read_text().splitlines()]
    assert ids == [1, 3]
    reloaded = MeasurementStore(persistence_path=path)
    assert [record.date for record in reloaded.query(MEASUREMENT_GROUP, limit=10)] == [3_000, 1_000]
