from __future__ import annotations

import time
from datetime import datetime, timezone, tzinfo

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import get_settings
from app.integrations.google.geocoding import GoogleMapsError
from app.repositories.tasks import TaskRepository, get_task_repository
from app.scheduler import DataQualityWarning, ErrandTask, GeoPoint, InvalidScheduleInput, RouteLeg, ScheduleEntry
from app.schemas import (
    GeoPointModel,
    PlanRequest,
    PlanTaskInput,
    ScheduleEntryRead,
    ScheduleRunRequest,
    ScheduleRunResponse,
    SequenceRequest,
    SequenceResponse,
    TimelineRequest,
    TimelineResponse,
    WarningRead,
)
from app.services.formatting import render_schedule_text
from app.services.locations import build_location_service
from app.services.scheduling import PlanResult, SchedulingMetrics, SchedulingService, build_travel_oracle

router = APIRouter()

_settings = get_settings()
_scheduling_service = SchedulingService(
    build_travel_oracle(_settings),
    location_service=build_location_service(_settings),
)


def get_scheduling_service() -> SchedulingService:
    return _scheduling_service


@router.post("/run", response_model=ScheduleRunResponse, status_code=status.HTTP_202_ACCEPTED)
def run_schedule(
    payload: ScheduleRunRequest,
    repository: TaskRepository = Depends(get_task_repository),
    service: SchedulingService = Depends(get_scheduling_service),
) -> ScheduleRunResponse:
    start_time = time.perf_counter()
    try:
        result, metrics = service.run_schedule(
            repository,
            origin=_origin(payload.origin),
            current_time=payload.current_time or datetime.now(tz=timezone.utc),
            policy=payload.policy,
        )
    except InvalidScheduleInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except GoogleMapsError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    runtime_ms = (time.perf_counter() - start_time) * 1000
    return _run_response(result, metrics, runtime_ms, _display_tz(payload.current_time))


@router.post("/plan", response_model=ScheduleRunResponse)
def plan_schedule(
    payload: PlanRequest,
    service: SchedulingService = Depends(get_scheduling_service),
) -> ScheduleRunResponse:
    start_time = time.perf_counter()
    try:
        result, metrics = service.plan(
            [_to_task(item) for item in payload.tasks],
            origin=_origin(payload.origin),
            start_time=payload.start_time or datetime.now(tz=timezone.utc),
            policy=payload.policy,
        )
    except InvalidScheduleInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except GoogleMapsError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    runtime_ms = (time.perf_counter() - start_time) * 1000
    return _run_response(result, metrics, runtime_ms, _display_tz(payload.start_time))


@router.post("/sequence", response_model=SequenceResponse)
def sequence_tasks(
    payload: SequenceRequest,
    service: SchedulingService = Depends(get_scheduling_service),
) -> SequenceResponse:
    try:
        result = service.sequence([_to_task(item) for item in payload.tasks], _origin(payload.origin))
    except InvalidScheduleInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return SequenceResponse(
        order=result.task_ids,
        warnings=[_warning_read(warning) for warning in result.warnings],
    )


@router.post("/timeline", response_model=TimelineResponse)
def build_timeline(
    payload: TimelineRequest,
    service: SchedulingService = Depends(get_scheduling_service),
) -> TimelineResponse:
    try:
        policy, entries = service.build_timeline(
            [_to_task(item) for item in payload.tasks],
            [RouteLeg(duration_seconds=leg.duration_seconds, distance_meters=leg.distance_meters) for leg in payload.legs],
            payload.start_time,
            payload.policy,
        )
    except InvalidScheduleInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return TimelineResponse(policy=policy.value, entries=[_entry_read(entry) for entry in entries])


def _origin(point: GeoPointModel | None) -> GeoPoint:
    if point is None:
        return GeoPoint(lat=_settings.default_origin_lat, lng=_settings.default_origin_lng)
    return GeoPoint(lat=point.lat, lng=point.lng)


def _to_task(item: PlanTaskInput) -> ErrandTask:
    return ErrandTask(
        task_id=item.id,
        title=item.title,
        location=GeoPoint(lat=item.lat, lng=item.lng),
        duration_minutes=item.duration_minutes,
        fixed_time=item.fixed_time,
        must_arrive_by=item.must_arrive_by,
        address=item.address,
    )


def _entry_read(entry: ScheduleEntry) -> ScheduleEntryRead:
    return ScheduleEntryRead(
        task_id=entry.task_id,
        title=entry.title,
        address=entry.address,
        lat=entry.location.lat,
        lng=entry.location.lng,
        arrive_time=entry.arrive_time,
        depart_time=entry.depart_time,
        travel_minutes=entry.travel_minutes,
        is_fixed=entry.is_fixed,
        deadline=entry.deadline,
        status=entry.status.value if entry.status is not None else None,
        is_late=entry.is_late,
    )


def _warning_read(warning: DataQualityWarning) -> WarningRead:
    return WarningRead(task_id=warning.task_id, code=warning.code, message=warning.message)


def _display_tz(moment: datetime | None) -> tzinfo:
    if moment is None or moment.tzinfo is None:
        return timezone.utc
    return moment.tzinfo


def _run_response(
    result: PlanResult,
    metrics: SchedulingMetrics,
    runtime_ms: float,
    display_tz: tzinfo = timezone.utc,
) -> ScheduleRunResponse:
    return ScheduleRunResponse(
        policy=result.policy.value,
        order=[task.task_id for task in result.order],
        entries=[_entry_read(entry) for entry in result.entries],
        unresolved_tasks=result.unresolved_tasks,
        warnings=[_warning_read(warning) for warning in result.warnings],
        metrics=metrics.to_dict(),
        summary=render_schedule_text(
            result.entries, policy=result.policy, warnings=result.warnings, tz=display_tz
        ),
        runtime_ms=runtime_ms,
    )
