"""Error taxonomy raised by the sensor services and stores."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence


class SensorBackendError(Exception):
    """Base class for errors surfaced to API callers."""


@dataclass(frozen=True)
class FieldError:
    field: str
    kind: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


class ReadingValidationError(SensorBackendError):
    def __init__(self, errors: Sequence[FieldError], received: Any = None) -> None:
        self.errors: List[FieldError] = list(errors)
        self.received = received
        fields = ", ".join(error.field for error in self.errors)
        super().__init__(f"Invalid sensor data: {fields}")


class NotFoundError(SensorBackendError):
    pass


class InvalidRangeError(SensorBackendError):
    pass


class StorageError(SensorBackendError):
    """The persistence collaborator failed; details stay in the logs."""
