"""Threshold alert detection over the four distance channels."""

from __future__ import annotations

from typing import Sequence, Tuple

from models.records import AlertThresholds

DEFAULT_THRESHOLDS = AlertThresholds()


def detect_alerts(
    values: Sequence[float],
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
) -> Tuple[bool, ...]:
    """Flag each channel whose value falls outside ``thresholds``.

    A channel alerts when it is closer than ``minimum`` (an obstacle too near
    the sensor) or farther than ``maximum`` (out of the sensing range).
    """
    return tuple(
        value < thresholds.minimum or value > thresholds.maximum for value in values
    )


def count_alerts(
    values: Sequence[float],
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
) -> int:
    return sum(detect_alerts(values, thresholds))
