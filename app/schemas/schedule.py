from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class GeoPointModel(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class PlanTaskInput(BaseModel):
    id: str
    title: str
    lat: float
    lng: float
    address: str | None = None
    duration_minutes: float | None = None
    fixed_time: bool = False
    must_arrive_by: datetime | None = None


class LegInput(BaseModel):
    duration_seconds: float
    distance_meters: float | None = None


class ScheduleRunRequest(BaseModel):
    origin: GeoPointModel | None = None
    current_time: datetime | None = None
    policy: Literal["FORWARD", "BACKWARD"] | None = None


class SequenceRequest(BaseModel):
    tasks: list[PlanTaskInput]
    origin: GeoPointModel | None = None


class TimelineRequest(BaseModel):
    tasks: list[PlanTaskInput]
    legs: list[LegInput]
    start_time: datetime
    policy: Literal["FORWARD", "BACKWARD"] | None = None


class PlanRequest(BaseModel):
    tasks: list[PlanTaskInput]
    origin: GeoPointModel | None = None
    start_time: datetime | None = None
    policy: Literal["FORWARD", "BACKWARD"] | None = None


class WarningRead(BaseModel):
    task_id: str
    code: str
    message: str


class ScheduleEntryRead(BaseModel):
    task_id: str
    title: str
    address: str | None
    lat: float
    lng: float
    arrive_time: datetime | None
    depart_time: datetime | None
    travel_minutes: int
    is_fixed: bool
    deadline: datetime | None
    status: Literal["ON_TIME", "TIGHT", "LATE"] | None
    is_late: bool


class SequenceResponse(BaseModel):
    order: list[str]
    warnings: list[WarningRead]


class TimelineResponse(BaseModel):
    policy: str
    entries: list[ScheduleEntryRead]


class ScheduleRunResponse(BaseModel):
    policy: str
    order: list[str]
    entries: list[ScheduleEntryRead]
    unresolved_tasks: list[str]
    warnings: list[WarningRead]
    metrics: dict
    summary: str
    runtime_ms: float | None = None
