"""Contract tests run against every reading store implementation."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta, timezone

import pytest

from datastore.memory import InMemoryReadingStore
from datastore.sqlite import SqliteReadingStore
from models.records import ReadingDraft
from services.errors import InvalidRangeError, StorageError

_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = _START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def _draft(value: float = 25.0, timestamp: int = 1_704_110_400) -> ReadingDraft:
    return ReadingDraft(
        sensor1=value, sensor2=30.12, sensor3=15.67, sensor4=42.89, timestamp=timestamp
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path, clock):
    if request.param == "memory":
        return InMemoryReadingStore(clock=clock)
    return SqliteReadingStore(path=tmp_path / "readings.db", clock=clock)


def test_insert_assigns_id_and_recorded_at(store, clock) -> None:
    first = store.insert(_draft(1.0))
    clock.advance(seconds=1)
    second = store.insert(_draft(2.0))

    assert first.id != second.id
    assert first.recorded_at == _START
    assert second.recorded_at == _START + timedelta(seconds=1)
    assert second.values() == (2.0, 30.12, 15.67, 42.89)
    assert store.count() == 2


def test_latest_follows_most_recent_insert(store, clock) -> None:
    assert store.latest() is None

    first = store.insert(_draft(1.0))
    assert store.latest() == first

    clock.advance(seconds=5)
    second = store.insert(_draft(2.0))
    assert store.latest() == second


def test_latest_breaks_ties_by_insertion_order(store) -> None:
    store.insert(_draft(1.0))
    store.insert(_draft(2.0))
    newest = store.insert(_draft(3.0))

    assert store.latest() == newest


def test_recorded_at_never_goes_backwards(store, clock) -> None:
    first = store.insert(_draft(1.0))
    clock.advance(minutes=-10)
    second = store.insert(_draft(2.0))

    assert second.recorded_at >= first.recorded_at
    assert store.latest() == second


def test_device_timestamp_does_not_affect_order(store, clock) -> None:
    store.insert(_draft(1.0, timestamp=2_000_000_000))
    clock.advance(seconds=1)
    later = store.insert(_draft(2.0, timestamp=1_000_000_000))

    assert store.latest() == later


def test_recent_returns_newest_first(store, clock) -> None:
    inserted = []
    for value in range(5):
        inserted.append(store.insert(_draft(float(value))))
        clock.advance(seconds=1)

    recent = store.recent(3)

    assert [reading.id for reading in recent] == [r.id for r in reversed(inserted[-3:])]
    assert store.recent(0) == []
    assert len(store.recent(100)) == 5


def test_recent_accepts_limits_beyond_integer_columns(store) -> None:
    store.insert(_draft(1.0))
    store.insert(_draft(2.0))

    recent = store.recent(99_999_999_999_999_999_999)

    assert [reading.sensor1 for reading in recent] == [2.0, 1.0]


def test_range_query_is_inclusive_and_ascending(store, clock) -> None:
    readings = []
    for value in range(4):
        readings.append(store.insert(_draft(float(value))))
        clock.advance(seconds=10)

    result = store.range_query(_START + timedelta(seconds=10), _START + timedelta(seconds=30))

    assert result == readings[1:4]


def test_range_query_from_earliest_datetime_covers_everything(store, clock) -> None:
    first = store.insert(_draft(1.0))
    clock.advance(minutes=1)
    second = store.insert(_draft(2.0))

    earliest = datetime.min.replace(tzinfo=timezone.utc)

    assert store.range_query(earliest, clock.now) == [first, second]


def test_range_query_without_matches_is_empty(store) -> None:
    store.insert(_draft())

    assert store.range_query(_START + timedelta(hours=1), _START + timedelta(hours=2)) == []


def test_range_query_rejects_inverted_bounds(store) -> None:
    with pytest.raises(InvalidRangeError):
        store.range_query(_START + timedelta(seconds=1), _START)


def test_naive_bounds_are_treated_as_utc(store) -> None:
    reading = store.insert(_draft())

    result = store.range_query(datetime(2024, 1, 1, 11, 0), datetime(2024, 1, 1, 13, 0))

    assert result == [reading]


def test_delete_older_than_removes_only_strictly_older(store, clock) -> None:
    old = store.insert(_draft(1.0))
    clock.advance(hours=1)
    boundary = store.insert(_draft(2.0))
    clock.advance(hours=1)
    recent = store.insert(_draft(3.0))

    deleted = store.delete_older_than(boundary.recorded_at)

    assert deleted == 1
    assert store.range_query(old.recorded_at, recent.recorded_at) == [boundary, recent]
    assert store.delete_older_than(boundary.recorded_at) == 0


def test_concurrent_inserts_keep_every_reading_in_order(store) -> None:
    threads = [
        threading.Thread(target=lambda: [store.insert(_draft()) for _ in range(25)])
        for _ in range(4)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    readings = store.recent(1000)
    assert len(readings) == 100
    assert len({reading.id for reading in readings}) == 100
    ordered = sorted(readings, key=lambda reading: reading.id)
    assert all(a.recorded_at <= b.recorded_at for a, b in zip(ordered, ordered[1:]))


def test_sqlite_store_persists_across_instances(tmp_path, clock) -> None:
    path = tmp_path / "nested" / "readings.db"
    reading = SqliteReadingStore(path=path, clock=clock).insert(_draft(12.5))

    reopened = SqliteReadingStore(path=path, clock=clock)

    assert path.exists()
    assert reopened.latest() == reading
    assert reopened.latest().recorded_at.tzinfo is not None


def test_sqlite_failures_surface_as_storage_error(tmp_path, clock, monkeypatch) -> None:
    store = SqliteReadingStore(path=tmp_path / "readings.db", clock=clock)

    def broken_connect(*_args, **_kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr("datastore.sqlite.sqlite3.connect", broken_connect)

    with pytest.raises(StorageError) as exc_info:
        store.insert(_draft())
    assert "disk I/O error" not in str(exc_info.value)
