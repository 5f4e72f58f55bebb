"""Request-level operations over the reading store."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, List, Optional

from datastore.base import Clock, ReadingStore, check_range, ensure_utc, utc_now
from datastore.factory import build_default_store
from models.records import AlertThresholds, StoredReading, TimeRange
from realtime.broadcaster import (
    SENSOR_EVENT,
    SENSOR_TOPIC,
    Publisher,
    build_default_broadcaster,
)
from services.aggregator import Aggregator, WindowStats
from services.chart import ChartPoint, project
from services.errors import NotFoundError
from services.validation import validate_reading
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_READINGS_LIMIT = 100
DEFAULT_ANALYTICS_HOURS = 24
DEFAULT_CHART_HOURS = 1

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


class SensorService:
    """Coordinates validation, storage, analytics and real-time notification."""

    def __init__(
        self,
        store: ReadingStore,
        publisher: Optional[Publisher] = None,
        aggregator: Optional[Aggregator] = None,
        thresholds: AlertThresholds = AlertThresholds(),
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.publisher = publisher
        self.aggregator = aggregator or Aggregator()
        self.thresholds = thresholds
        self._clock = clock

    def ingest(self, payload: Any) -> StoredReading:
        """Validate and persist a raw reading, then notify subscribers."""
        draft = validate_reading(payload)
        reading = self.store.insert(draft)
        logger.info(
            "Stored sensor reading",
            extra={
                "reading_id": reading.id,
                "device_timestamp": reading.timestamp,
                "sensors": reading.values(),
            },
        )
        self._notify(reading)
        return reading

    def latest(self) -> StoredReading:
        reading = self.store.latest()
        if reading is None:
            raise NotFoundError("No readings available.")
        return reading

    def list_readings(self, limit: int = DEFAULT_READINGS_LIMIT) -> List[StoredReading]:
        """Most recent readings first."""
        return self.store.recent(limit)

    def analytics(
        self,
        hours: int = DEFAULT_ANALYTICS_HOURS,
        thresholds: Optional[AlertThresholds] = None,
    ) -> WindowStats:
        window = self._window(hours)
        readings = self.store.range_query(window.start, window.end)
        stats = self.aggregator.aggregate(
            readings, time_range=window, thresholds=thresholds or self.thresholds
        )
        logger.debug(
            "Computed window statistics",
            extra={"hours": hours, "total_readings": stats.total_readings},
        )
        return stats

    def chart_data(self, hours: int = DEFAULT_CHART_HOURS) -> List[ChartPoint]:
        window = self._window(hours)
        return project(self.store.range_query(window.start, window.end))

    def readings_between(self, start: datetime, end: datetime) -> List[StoredReading]:
        start, end = check_range(start, end)
        return self.store.range_query(start, end)

    def _window(self, hours: int) -> TimeRange:
        end = ensure_utc(self._clock())
        try:
            start = end - timedelta(hours=hours)
        except OverflowError:
            # Windows reaching past year 1 cover everything stored.
            start = _EARLIEST
        return TimeRange(start=start, end=end)

    def _notify(self, reading: StoredReading) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher.publish(SENSOR_TOPIC, SENSOR_EVENT, reading.as_payload())
        except Exception:
            logger.warning(
                "Failed to publish sensor reading",
                exc_info=True,
                extra={"reading_id": reading.id, "topic": SENSOR_TOPIC},
            )


@lru_cache
def build_default_service() -> SensorService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    return SensorService(
        store=build_default_store(),
        publisher=build_default_broadcaster(),
        thresholds=AlertThresholds(
            minimum=settings.alert_min_threshold,
            maximum=settings.alert_max_threshold,
        ),
    )
