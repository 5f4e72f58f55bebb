"""Unit tests for the aggregation logic."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.records import AlertThresholds, StoredReading, TimeRange
from services.aggregator import Aggregator, round2

_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
_WINDOW = TimeRange(start=_START, end=_START + timedelta(hours=1))


def _reading(reading_id: int, s1: float, s2: float = 50.0, s3: float = 50.0, s4: float = 50.0) -> StoredReading:
    """Helper to build deterministic stored readings."""

    return StoredReading(
        id=reading_id,
        sensor1=s1,
        sensor2=s2,
        sensor3=s3,
        sensor4=s4,
        timestamp=1_704_067_200 + reading_id,
        recorded_at=_START + timedelta(seconds=reading_id),
    )


def test_aggregate_empty_iterable_returns_zeroed_summary() -> None:
    aggregator = Aggregator()

    summary = aggregator.aggregate([], time_range=_WINDOW)

    assert summary.total_readings == 0
    assert summary.alerts_count == 0
    for values in (summary.average_values, summary.min_values, summary.max_values):
        assert values == {"sensor1": 0.0, "sensor2": 0.0, "sensor3": 0.0, "sensor4": 0.0}
    assert summary.time_range == _WINDOW


def test_aggregate_computes_statistics() -> None:
    aggregator = Aggregator()
    readings = [_reading(1, 10.0), _reading(2, 20.0), _reading(3, 15.0)]

    summary = aggregator.aggregate(readings, time_range=_WINDOW)

    assert summary.total_readings == 3
    assert summary.average_values["sensor1"] == 15.00
    assert summary.min_values["sensor1"] == 10.0
    assert summary.max_values["sensor1"] == 20.0
    assert summary.average_values["sensor2"] == 50.0
    assert summary.time_range == _WINDOW


def test_min_and_max_are_not_rounded() -> None:
    readings = [_reading(1, 10.123), _reading(2, 10.456)]

    summary = Aggregator().aggregate(readings, time_range=_WINDOW)

    assert summary.min_values["sensor1"] == 10.123
    assert summary.max_values["sensor1"] == 10.456
    assert summary.average_values["sensor1"] == 10.29


def test_alerts_count_totals_flagged_channels() -> None:
    readings = [
        _reading(1, 5.0, 250.0),  # two channels out of band
        _reading(2, 50.0),
        _reading(3, 9.99),
    ]

    summary = Aggregator().aggregate(readings, time_range=_WINDOW)

    assert summary.alerts_count == 3


def test_thresholds_can_be_overridden() -> None:
    readings = [_reading(1, 25.43, 30.12, 15.67, 42.89)]

    default = Aggregator().aggregate(readings, time_range=_WINDOW)
    narrow = Aggregator().aggregate(
        readings, time_range=_WINDOW, thresholds=AlertThresholds(minimum=20, maximum=40)
    )

    assert default.alerts_count == 0
    assert narrow.alerts_count == 2


def test_result_does_not_depend_on_order() -> None:
    readings = [_reading(1, 12.5, 7.0), _reading(2, 180.25, 210.0), _reading(3, 33.3, 45.0)]

    forward = Aggregator().aggregate(readings, time_range=_WINDOW)
    backward = Aggregator().aggregate(list(reversed(readings)), time_range=_WINDOW)

    assert forward == backward


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (15.0, 15.0),
        (2.675, 2.68),
        (1.005, 1.01),
        (-2.675, -2.68),
        (28.52666, 28.53),
        (0.004, 0.0),
    ],
)
def test_round2_rounds_half_away_from_zero(value: float, expected: float) -> None:
    assert round2(value) == expected
