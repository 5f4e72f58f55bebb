from __future__ import annotations

import pytest

from models.records import AlertThresholds
from services.alerts import count_alerts, detect_alerts


def test_detect_flags_values_outside_default_band() -> None:
    assert detect_alerts([5, 50, 205, 100], AlertThresholds(minimum=10, maximum=200)) == (
        True,
        False,
        True,
        False,
    )


def test_band_edges_do_not_alert() -> None:
    assert detect_alerts([10, 200, 10.0, 200.0]) == (False, False, False, False)


def test_custom_thresholds_are_respected() -> None:
    thresholds = AlertThresholds(minimum=20, maximum=40)

    assert detect_alerts([25.43, 30.12, 15.67, 42.89], thresholds) == (False, False, True, True)
    assert count_alerts([25.43, 30.12, 15.67, 42.89], thresholds) == 2


def test_inverted_thresholds_are_rejected() -> None:
    with pytest.raises(ValueError):
        AlertThresholds(minimum=50, maximum=10)
