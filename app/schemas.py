"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from models.records import StoredReading, format_utc
from services.aggregator import WindowStats
from services.chart import ChartPoint
from services.errors import FieldError


class ApiModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SensorReadingOut(ApiModel):
    """A stored reading as returned by the API."""

    id: int
    sensor1: float
    sensor2: float
    sensor3: float
    sensor4: float
    timestamp: int = Field(..., description="Device capture time in Unix epoch seconds.")
    recorded_at: datetime = Field(..., description="Server-side insertion time (UTC).")

    @field_serializer("recorded_at")
    def serialize_recorded_at(self, value: datetime) -> str:
        return format_utc(value)

    @classmethod
    def from_record(cls, reading: StoredReading) -> "SensorReadingOut":
        return cls(
            id=reading.id,
            sensor1=reading.sensor1,
            sensor2=reading.sensor2,
            sensor3=reading.sensor3,
            sensor4=reading.sensor4,
            timestamp=reading.timestamp,
            recorded_at=reading.recorded_at,
        )


class SensorValues(ApiModel):
    sensor1: float
    sensor2: float
    sensor3: float
    sensor4: float


class TimeRangeOut(ApiModel):
    start: datetime = Field(..., alias="from")
    end: datetime = Field(..., alias="to")


class WindowStatsOut(ApiModel):
    """Aggregate metrics for one analytics window."""

    total_readings: int = Field(..., ge=0)
    average_values: SensorValues
    min_values: SensorValues
    max_values: SensorValues
    alerts_count: int = Field(..., ge=0, description="Flagged channel instances in the window.")
    time_range: TimeRangeOut

    @classmethod
    def from_stats(cls, stats: WindowStats) -> "WindowStatsOut":
        return cls(
            total_readings=stats.total_readings,
            average_values=SensorValues(**stats.average_values),
            min_values=SensorValues(**stats.min_values),
            max_values=SensorValues(**stats.max_values),
            alerts_count=stats.alerts_count,
            time_range=TimeRangeOut(start=stats.time_range.start, end=stats.time_range.end),
        )


class ChartPointOut(ApiModel):
    timestamp: int
    sensor1: float
    sensor2: float
    sensor3: float
    sensor4: float

    @classmethod
    def from_point(cls, point: ChartPoint) -> "ChartPointOut":
        return cls(
            timestamp=point.timestamp,
            sensor1=point.sensor1,
            sensor2=point.sensor2,
            sensor3=point.sensor3,
            sensor4=point.sensor4,
        )


class IngestResponse(ApiModel):
    success: bool = True
    data: SensorReadingOut
    message: str = "Sensor data stored."


class ReadingResponse(ApiModel):
    success: bool = True
    data: SensorReadingOut


class ReadingListResponse(ApiModel):
    success: bool = True
    data: List[SensorReadingOut]
    count: int = Field(..., ge=0)


class AnalyticsResponse(ApiModel):
    success: bool = True
    data: WindowStatsOut


class ChartDataResponse(ApiModel):
    success: bool = True
    data: List[ChartPointOut]
    count: int = Field(..., ge=0)


class DateRangeOut(ApiModel):
    start_date: datetime
    end_date: datetime


class RangeReadingsResponse(ApiModel):
    success: bool = True
    data: List[SensorReadingOut]
    count: int = Field(..., ge=0)
    range: DateRangeOut


class FieldErrorOut(ApiModel):
    field: str
    kind: str
    message: str

    @classmethod
    def from_error(cls, error: FieldError) -> "FieldErrorOut":
        return cls(field=error.field, kind=error.kind, message=error.message)


class ErrorResponse(ApiModel):
    """Body returned for domain errors; unset fields are omitted."""

    success: bool = False
    error: Optional[str] = None
    message: Optional[str] = None
    errors: Optional[List[FieldErrorOut]] = None
    received: Optional[Any] = None


class RouteNotFoundResponse(ApiModel):
    error: str = "Route not found."
    path: str
    method: str
    timestamp: datetime
