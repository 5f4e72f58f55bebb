"""Validation gate for raw sensor payloads."""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, List, Mapping, Optional, Tuple

from models.records import SENSOR_FIELDS, ReadingDraft
from services.errors import FieldError, ReadingValidationError

_INT64_MAX = 2**63 - 1


def _read_number(payload: Mapping[str, Any], name: str) -> Tuple[Optional[float], Optional[FieldError]]:
    if name not in payload or payload[name] is None:
        return None, FieldError(name, "missing", f"{name} is required")
    value = payload[name]
    # bool is a subclass of int but never a measurement.
    if isinstance(value, bool) or not isinstance(value, Real):
        return None, FieldError(name, "not_numeric", f"{name} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        return None, FieldError(name, "out_of_range", f"{name} must be finite")
    return value, None


def validate_reading(payload: Any) -> ReadingDraft:
    """Return a draft for ``payload`` or raise with every offending field."""
    if not isinstance(payload, Mapping):
        raise ReadingValidationError(
            [FieldError("body", "invalid_body", "request body must be a JSON object")],
            received=payload,
        )

    errors: List[FieldError] = []
    sensors: List[float] = []
    for name in SENSOR_FIELDS:
        value, error = _read_number(payload, name)
        if error is not None:
            errors.append(error)
            continue
        try:
            measurement = float(value)
        except OverflowError:
            errors.append(FieldError(name, "out_of_range", f"{name} is too large"))
            continue
        if measurement < 0:
            errors.append(FieldError(name, "out_of_range", f"{name} must be >= 0"))
            continue
        sensors.append(measurement)

    timestamp: Optional[int] = None
    value, error = _read_number(payload, "timestamp")
    if error is not None:
        errors.append(error)
    elif value != int(value):
        errors.append(
            FieldError("timestamp", "not_integer", "timestamp must be whole epoch seconds")
        )
    elif not 0 < value <= _INT64_MAX:
        errors.append(
            FieldError("timestamp", "out_of_range", "timestamp must be a positive epoch value")
        )
    else:
        timestamp = int(value)

    if errors or timestamp is None:
        raise ReadingValidationError(errors, received=dict(payload))

    return ReadingDraft(
        sensor1=sensors[0],
        sensor2=sensors[1],
        sensor3=sensors[2],
        sensor4=sensors[3],
        timestamp=timestamp,
    )
