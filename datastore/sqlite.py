from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Iterator, List, Optional

from datastore.base import Clock, check_range, ensure_utc, next_recorded_at, utc_now
from models.records import ReadingDraft, StoredReading
from services.errors import StorageError

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS sensor_readings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        sensor1 REAL NOT NULL,
        sensor2 REAL NOT NULL,
        sensor3 REAL NOT NULL,
        sensor4 REAL NOT NULL,
        timestamp INTEGER NOT NULL,
        recorded_at INTEGER NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_sensor_readings_recorded_at
    ON sensor_readings (recorded_at, id)
    """,
)

_COLUMNS = "id, sensor1, sensor2, sensor3, sensor4, timestamp, recorded_at"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Largest value sqlite3 binds as an INTEGER parameter.
_SQLITE_MAX_INT = 2**63 - 1


def _to_micros(value: datetime) -> int:
    delta = ensure_utc(value) - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds


def _from_micros(value: int) -> datetime:
    seconds, micros = divmod(value, 1_000_000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=micros)


def _row_to_reading(row: sqlite3.Row) -> StoredReading:
    return StoredReading(
        id=row["id"],
        sensor1=row["sensor1"],
        sensor2=row["sensor2"],
        sensor3=row["sensor3"],
        sensor4=row["sensor4"],
        timestamp=row["timestamp"],
        recorded_at=_from_micros(row["recorded_at"]),
    )


class SqliteReadingStore:
    """Reading store persisted in a single SQLite file."""

    def __init__(self, path: Path, clock: Clock = utc_now) -> None:
        self.path = path
        self._clock = clock
        self._lock = Lock()
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """
        Yield a short-lived connection.

        Commits on success, rolls back on error, and reports any sqlite3
        failure as a StorageError.
        """
        try:
            conn = sqlite3.connect(self.path)
        except sqlite3.Error as exc:
            logger.exception("Could not open reading database %s", self.path)
            raise StorageError("Reading storage is unavailable.") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.exception("Reading database operation failed")
            raise StorageError("Reading storage operation failed.") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def insert(self, draft: ReadingDraft) -> StoredReading:
        with self._lock, self._connection() as conn:
            row = conn.execute("SELECT MAX(recorded_at) AS last FROM sensor_readings").fetchone()
            last = _from_micros(row["last"]) if row["last"] is not None else None
            recorded_at = next_recorded_at(self._clock, last)
            cursor = conn.execute(
                """
                INSERT INTO sensor_readings
                    (sensor1, sensor2, sensor3, sensor4, timestamp, recorded_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (*draft.values(), draft.timestamp, _to_micros(recorded_at)),
            )
            reading_id = cursor.lastrowid
        return StoredReading.from_draft(draft, reading_id=reading_id, recorded_at=recorded_at)

    def latest(self) -> Optional[StoredReading]:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM sensor_readings ORDER BY recorded_at DESC, id DESC LIMIT 1"
            ).fetchone()
        return _row_to_reading(row) if row is not None else None

    def recent(self, limit: int) -> List[StoredReading]:
        if limit <= 0:
            return []
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM sensor_readings ORDER BY recorded_at DESC, id DESC LIMIT ?",
                (min(limit, _SQLITE_MAX_INT),),
            ).fetchall()
        return [_row_to_reading(row) for row in rows]

    def range_query(self, start: datetime, end: datetime) -> List[StoredReading]:
        start, end = check_range(start, end)
        with self._lock, self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS} FROM sensor_readings
                WHERE recorded_at BETWEEN ? AND ?
                ORDER BY recorded_at ASC, id ASC
                """,
                (_to_micros(start), _to_micros(end)),
            ).fetchall()
        return [_row_to_reading(row) for row in rows]

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock, self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM sensor_readings WHERE recorded_at < ?",
                (_to_micros(cutoff),),
            )
            return cursor.rowcount

    def count(self) -> int:
        with self._lock, self._connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM sensor_readings").fetchone()
        return int(row["total"])

    def close(self) -> None:
        """Connections are per operation, so there is nothing left open."""
