"""Aggregation logic for windows of sensor readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

from models.records import SENSOR_FIELDS, AlertThresholds, StoredReading, TimeRange
from services.alerts import DEFAULT_THRESHOLDS, count_alerts

_TWO_PLACES = Decimal("0.01")


def _zeroed() -> Dict[str, float]:
    return {name: 0.0 for name in SENSOR_FIELDS}


def round2(value: float) -> float:
    """Round to two decimals, halves away from zero (2.675 -> 2.68)."""
    # ROUND_HALF_UP in decimal rounds away from zero; repr() keeps the
    # value the caller sees instead of its binary approximation.
    return float(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


@dataclass
class WindowStats:
    """Computed statistics for the readings inside one time window."""

    time_range: TimeRange
    total_readings: int = 0
    average_values: Dict[str, float] = field(default_factory=_zeroed)
    min_values: Dict[str, float] = field(default_factory=_zeroed)
    max_values: Dict[str, float] = field(default_factory=_zeroed)
    alerts_count: int = 0


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(
        self,
        readings: Iterable[StoredReading],
        time_range: TimeRange,
        thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
    ) -> WindowStats:
        stats = WindowStats(time_range=time_range)
        channels = len(SENSOR_FIELDS)
        sums: List[float] = [0.0] * channels
        minimums: List[float] = [0.0] * channels
        maximums: List[float] = [0.0] * channels

        for reading in readings:
            values = reading.values()
            if stats.total_readings == 0:
                minimums = list(values)
                maximums = list(values)
            stats.total_readings += 1
            for index, value in enumerate(values):
                sums[index] += value
                if value < minimums[index]:
                    minimums[index] = value
                if value > maximums[index]:
                    maximums[index] = value
            # Counts flagged channels, not flagged readings.
            stats.alerts_count += count_alerts(values, thresholds)

        if stats.total_readings:
            for index, name in enumerate(SENSOR_FIELDS):
                stats.average_values[name] = round2(sums[index] / stats.total_readings)
                stats.min_values[name] = minimums[index]
                stats.max_values[name] = maximums[index]

        return stats
