"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

SENSOR_FIELDS: Tuple[str, str, str, str] = ("sensor1", "sensor2", "sensor3", "sensor4")

SensorValues = Tuple[float, float, float, float]


def format_utc(value: datetime) -> str:
    """ISO-8601 text in UTC with a ``Z`` suffix; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class ReadingDraft:
    """A validated reading that has not been stored yet."""

    sensor1: float
    sensor2: float
    sensor3: float
    sensor4: float
    timestamp: int

    def values(self) -> SensorValues:
        return (self.sensor1, self.sensor2, self.sensor3, self.sensor4)


@dataclass(frozen=True, slots=True)
class StoredReading:
    """A reading accepted by a store; ``recorded_at`` is the ordering key."""

    id: int
    sensor1: float
    sensor2: float
    sensor3: float
    sensor4: float
    timestamp: int
    recorded_at: datetime

    def values(self) -> SensorValues:
        return (self.sensor1, self.sensor2, self.sensor3, self.sensor4)

    def as_payload(self) -> Dict[str, Any]:
        """JSON-ready event payload; keys match the public reading representation."""
        return {
            "id": self.id,
            "sensor1": self.sensor1,
            "sensor2": self.sensor2,
            "sensor3": self.sensor3,
            "sensor4": self.sensor4,
            "timestamp": self.timestamp,
            "recordedAt": format_utc(self.recorded_at),
        }

    @classmethod
    def from_draft(cls, draft: ReadingDraft, reading_id: int, recorded_at: datetime) -> "StoredReading":
        return cls(
            id=reading_id,
            sensor1=draft.sensor1,
            sensor2=draft.sensor2,
            sensor3=draft.sensor3,
            sensor4=draft.sensor4,
            timestamp=draft.timestamp,
            recorded_at=recorded_at,
        )


@dataclass(frozen=True, slots=True)
class AlertThresholds:
    """Inclusive distance band; values outside it raise an alert."""

    minimum: float = 10.0
    maximum: float = 200.0

    def __post_init__(self) -> None:
        if self.minimum > self.maximum:
            raise ValueError(
                f"Alert threshold minimum {self.minimum} exceeds maximum {self.maximum}."
            )


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: datetime
    end: datetime
