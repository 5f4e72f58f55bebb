from __future__ import annotations

from bisect import bisect_left, bisect_right
from datetime import datetime
from threading import Lock
from typing import List, Optional

from datastore.base import Clock, check_range, ensure_utc, next_recorded_at, utc_now
from models.records import ReadingDraft, StoredReading


def _recorded_at(reading: StoredReading) -> datetime:
    return reading.recorded_at


class InMemoryReadingStore:
    """Process-local store; readings are kept sorted by insertion."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._items: List[StoredReading] = []
        self._next_id = 1
        self._lock = Lock()

    def insert(self, draft: ReadingDraft) -> StoredReading:
        with self._lock:
            last = self._items[-1].recorded_at if self._items else None
            reading = StoredReading.from_draft(
                draft,
                reading_id=self._next_id,
                recorded_at=next_recorded_at(self._clock, last),
            )
            self._items.append(reading)
            self._next_id += 1
            return reading

    def latest(self) -> Optional[StoredReading]:
        with self._lock:
            return self._items[-1] if self._items else None

    def recent(self, limit: int) -> List[StoredReading]:
        if limit <= 0:
            return []
        with self._lock:
            return list(reversed(self._items[-limit:]))

    def range_query(self, start: datetime, end: datetime) -> List[StoredReading]:
        start, end = check_range(start, end)
        with self._lock:
            lower = bisect_left(self._items, start, key=_recorded_at)
            upper = bisect_right(self._items, end, key=_recorded_at)
            return self._items[lower:upper]

    def delete_older_than(self, cutoff: datetime) -> int:
        cutoff = ensure_utc(cutoff)
        with self._lock:
            index = bisect_left(self._items, cutoff, key=_recorded_at)
            del self._items[:index]
            return index

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def close(self) -> None:
        """Nothing to release; readings live as long as the store object."""
