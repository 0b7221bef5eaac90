from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class InvalidScheduleInput(ValueError):
    """Raised when inputs violate the scheduling contract."""


class StopStatus(str, Enum):
    ON_TIME = "ON_TIME"
    TIGHT = "TIGHT"
    LATE = "LATE"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise InvalidScheduleInput(f"coordinates must be finite, got ({self.lat}, {self.lng})")
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidScheduleInput(f"latitude {self.lat} is outside [-90, 90]")
        if not -180.0 <= self.lng <= 180.0:
            raise InvalidScheduleInput(f"longitude {self.lng} is outside [-180, 180]")


@dataclass(frozen=True, slots=True)
class ErrandTask:
    """A stop to visit, already resolved to a point on the map."""

    task_id: str
    title: str
    location: GeoPoint
    duration_minutes: float | None = None
    fixed_time: bool = False
    must_arrive_by: datetime | None = None
    address: str | None = None

    @property
    def has_deadline(self) -> bool:
        return self.must_arrive_by is not None


@dataclass(frozen=True, slots=True)
class RouteLeg:
    """Travel segment arriving at a stop, as reported by a travel oracle."""

    duration_seconds: float
    distance_meters: float | None = None


@dataclass(frozen=True, slots=True)
class ScheduleEntry:
    """Realised timing of one stop.

    Under the forward policy ``arrive_time`` is when the stop is reached and
    ``depart_time`` is when the errand is finished. Under the backward policy
    ``arrive_time`` is the target arrival (deadline minus buffer) and
    ``depart_time`` is the latest safe departure from the previous stop; both
    are ``None`` for stops without a deadline.
    """

    task_id: str
    title: str
    location: GeoPoint
    arrive_time: datetime | None
    depart_time: datetime | None
    travel_minutes: int
    is_fixed: bool
    deadline: datetime | None = None
    status: StopStatus | None = None
    address: str | None = None

    @property
    def is_late(self) -> bool:
        return self.status is StopStatus.LATE


@dataclass(frozen=True, slots=True)
class DataQualityWarning:
    task_id: str
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class SequenceResult:
    order: list[ErrandTask]
    warnings: list[DataQualityWarning] = field(default_factory=list)

    @property
    def task_ids(self) -> list[str]:
        return [task.task_id for task in self.order]


__all__ = [
    "DataQualityWarning",
    "ErrandTask",
    "GeoPoint",
    "InvalidScheduleInput",
    "RouteLeg",
    "ScheduleEntry",
    "SequenceResult",
    "StopStatus",
]
