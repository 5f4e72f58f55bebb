"""HTTP route definitions for the service."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.schemas import (
    AnalyticsResponse,
    ChartDataResponse,
    ChartPointOut,
    DateRangeOut,
    IngestResponse,
    RangeReadingsResponse,
    ReadingListResponse,
    ReadingResponse,
    SensorReadingOut,
    WindowStatsOut,
)
from models.records import AlertThresholds
from services.errors import InvalidRangeError
from services.sensor_service import (
    DEFAULT_ANALYTICS_HOURS,
    DEFAULT_CHART_HOURS,
    DEFAULT_READINGS_LIMIT,
    SensorService,
    build_default_service,
)

_STARTED_AT = time.monotonic()

router = APIRouter()
sensors = APIRouter(prefix="/api/sensors", tags=["sensors"])


def get_service() -> SensorService:
    return build_default_service()


def _parse_positive_int(value: Optional[str], default: int) -> int:
    """Lenient query parsing: anything but a positive integer yields ``default``."""
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_datetime(name: str, value: Optional[str]) -> datetime:
    candidate = (value or "").strip()
    if not candidate:
        raise InvalidRangeError("startDate and endDate are required.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise InvalidRangeError(f"Invalid date format for {name}: {value!r}.") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


@sensors.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=IngestResponse,
    summary="Store one reading reported by the sensor array.",
)
async def receive_sensor_data(
    request: Request,
    service: SensorService = Depends(get_service),
) -> IngestResponse:
    try:
        payload: Any = await request.json()
    except ValueError:
        payload = None
    reading = service.ingest(payload)
    return IngestResponse(
        data=SensorReadingOut.from_record(reading),
        message="Sensor data stored.",
    )


@sensors.get(
    "/latest",
    response_model=ReadingResponse,
    summary="Most recently recorded reading.",
)
async def get_latest_reading(
    service: SensorService = Depends(get_service),
) -> ReadingResponse:
    return ReadingResponse(data=SensorReadingOut.from_record(service.latest()))


@sensors.get(
    "/readings",
    response_model=ReadingListResponse,
    summary="Recent readings, newest first.",
)
async def get_readings(
    limit: Optional[str] = Query(None, description="Maximum number of readings."),
    service: SensorService = Depends(get_service),
) -> ReadingListResponse:
    readings = service.list_readings(_parse_positive_int(limit, DEFAULT_READINGS_LIMIT))
    return ReadingListResponse(
        data=[SensorReadingOut.from_record(reading) for reading in readings],
        count=len(readings),
    )


@sensors.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Statistics over the last N hours.",
)
async def get_analytics(
    hours: Optional[str] = Query(None, description="Window length in hours."),
    min_threshold: Optional[float] = Query(None, alias="minThreshold"),
    max_threshold: Optional[float] = Query(None, alias="maxThreshold"),
    service: SensorService = Depends(get_service),
) -> AnalyticsResponse:
    thresholds: Optional[AlertThresholds] = None
    if min_threshold is not None or max_threshold is not None:
        try:
            thresholds = AlertThresholds(
                minimum=service.thresholds.minimum if min_threshold is None else min_threshold,
                maximum=service.thresholds.maximum if max_threshold is None else max_threshold,
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc
    stats = service.analytics(
        _parse_positive_int(hours, DEFAULT_ANALYTICS_HOURS), thresholds=thresholds
    )
    return AnalyticsResponse(data=WindowStatsOut.from_stats(stats))


@sensors.get(
    "/chart-data",
    response_model=ChartDataResponse,
    summary="Plot-ready points over the last N hours.",
)
async def get_chart_data(
    hours: Optional[str] = Query(None, description="Window length in hours."),
    service: SensorService = Depends(get_service),
) -> ChartDataResponse:
    points = service.chart_data(_parse_positive_int(hours, DEFAULT_CHART_HOURS))
    return ChartDataResponse(
        data=[ChartPointOut.from_point(point) for point in points],
        count=len(points),
    )


@sensors.get(
    "/range",
    response_model=RangeReadingsResponse,
    summary="Readings recorded between two ISO-8601 dates (inclusive).",
)
async def get_readings_by_range(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    service: SensorService = Depends(get_service),
) -> RangeReadingsResponse:
    start = _parse_datetime("startDate", start_date)
    end = _parse_datetime("endDate", end_date)
    readings = service.readings_between(start, end)
    return RangeReadingsResponse(
        data=[SensorReadingOut.from_record(reading) for reading in readings],
        count=len(readings),
        range=DateRangeOut(start_date=start, end_date=end),
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    service: SensorService = Depends(get_service),
) -> Dict[str, Any]:
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "readings": service.store.count(),
    }


@router.get(
    "/",
    summary="Root endpoint lists the available routes.",
    status_code=status.HTTP_200_OK,
)
async def root() -> Dict[str, Any]:
    return {
        "message": "Traffic sensor backend API",
        "health": "/health",
        "endpoints": {
            "sensors": "/api/sensors",
            "latest": "/api/sensors/latest",
            "readings": "/api/sensors/readings",
            "analytics": "/api/sensors/analytics",
            "chartData": "/api/sensors/chart-data",
            "range": "/api/sensors/range",
            "realtime": "/ws",
        },
    }


router.include_router(sensors)
