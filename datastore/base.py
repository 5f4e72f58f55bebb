"""Store contract shared by the reading stores."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from models.records import ReadingDraft, StoredReading
from services.errors import InvalidRangeError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_recorded_at(clock: Clock, last: Optional[datetime]) -> datetime:
    now = ensure_utc(clock())
    if last is not None and now < last:
        return last
    return now


def check_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start, end = ensure_utc(start), ensure_utc(end)
    if start > end:
        raise InvalidRangeError(
            f"Range start {start.isoformat()} is after range end {end.isoformat()}."
        )
    return start, end


class ReadingStore(Protocol):
    """Append-only time series ordered by ``recorded_at`` then ``id``."""

    def insert(self, draft: ReadingDraft) -> StoredReading:
        ...

    def latest(self) -> Optional[StoredReading]:
        ...

    def recent(self, limit: int) -> List[StoredReading]:
        ...

    def range_query(self, start: datetime, end: datetime) -> List[StoredReading]:
        ...

    def delete_older_than(self, cutoff: datetime) -> int:
        ...

    def count(self) -> int:
        ...

    def close(self) -> None:
        ...
