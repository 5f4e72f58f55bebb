"""Projection of stored readings into chart points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from models.records import StoredReading


@dataclass(frozen=True, slots=True)
class ChartPoint:
    timestamp: int
    sensor1: float
    sensor2: float
    sensor3: float
    sensor4: float


def project(readings: Iterable[StoredReading]) -> List[ChartPoint]:
    """Map each reading to one point, keeping the input order.

    No resampling happens here; callers bound the volume through the window
    they query.
    """
    return [
        ChartPoint(
            timestamp=reading.timestamp,
            sensor1=reading.sensor1,
            sensor2=reading.sensor2,
            sensor3=reading.sensor3,
            sensor4=reading.sensor4,
        )
        for reading in readings
    ]
