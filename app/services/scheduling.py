from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Sequence

from app.core.config import Settings
from app.integrations.google.directions import GoogleDirectionsOracle
from app.integrations.travel import FallbackTravelOracle, HaversineTravelOracle, TravelOracle
from app.repositories.tasks import TaskRecord, TaskRepository
from app.scheduler.models import (
    DataQualityWarning,
    ErrandTask,
    GeoPoint,
    RouteLeg,
    ScheduleEntry,
    SequenceResult,
    StopStatus,
)
from app.scheduler.router import TimelineRouter
from app.scheduler.sequencer import Sequencer
from app.scheduler.timeline import TimelinePolicy
from app.services.locations import LocationResolutionService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SchedulingMetrics:
    stop_count: int
    fixed_count: int
    flexible_count: int
    late_count: int
    tight_count: int
    total_travel_minutes: int
    warning_count: int

    def to_dict(self) -> dict[str, int]:
        return {
            "stop_count": self.stop_count,
            "fixed_count": self.fixed_count,
            "flexible_count": self.flexible_count,
            "late_count": self.late_count,
            "tight_count": self.tight_count,
            "total_travel_minutes": self.total_travel_minutes,
            "warning_count": self.warning_count,
        }


@dataclass(slots=True)
class PlanResult:
    policy: TimelinePolicy
    order: list[ErrandTask]
    entries: list[ScheduleEntry]
    warnings: list[DataQualityWarning] = field(default_factory=list)
    unresolved_tasks: list[str] = field(default_factory=list)


class SchedulingService:
    """Coordinates location resolution, ordering, travel lookup and timeline building."""

    def __init__(
        self,
        travel_oracle: TravelOracle,
        *,
        location_service: LocationResolutionService | None = None,
        sequencer: Sequencer | None = None,
        timeline_router: TimelineRouter | None = None,
    ) -> None:
        self.travel_oracle = travel_oracle
        self.location_service = location_service or LocationResolutionService(None)
        self.sequencer = sequencer or Sequencer()
        self.timeline_router = timeline_router or TimelineRouter()

    def sequence(self, tasks: Sequence[ErrandTask], origin: GeoPoint) -> SequenceResult:
        return self.sequencer.sequence([_normalise_task(task) for task in tasks], origin)

    def build_timeline(
        self,
        ordered_tasks: Sequence[ErrandTask],
        legs: Sequence[RouteLeg],
        start_time: datetime,
        policy: TimelinePolicy | str | None = None,
    ) -> tuple[TimelinePolicy, list[ScheduleEntry]]:
        active_policy, builder = self.timeline_router.resolve(policy)
        entries = builder([_normalise_task(task) for task in ordered_tasks], legs, _as_utc(start_time))
        return active_policy, entries

    def plan(
        self,
        tasks: Sequence[ErrandTask],
        *,
        origin: GeoPoint,
        start_time: datetime,
        policy: TimelinePolicy | str | None = None,
    ) -> tuple[PlanResult, SchedulingMetrics]:
        sequenced = self.sequence(tasks, origin)
        legs: list[RouteLeg] = []
        if sequenced.order:
            legs = self.travel_oracle.legs(origin, [task.location for task in sequenced.order])

        active_policy, entries = self.build_timeline(sequenced.order, legs, start_time, policy)
        result = PlanResult(
            policy=active_policy,
            order=sequenced.order,
            entries=entries,
            warnings=sequenced.warnings,
        )
        metrics = _build_metrics(result)
        logger.info(
            "Scheduled %d stops with %s policy (%d late, %d tight, %d warnings)",
            metrics.stop_count,
            active_policy.value,
            metrics.late_count,
            metrics.tight_count,
            metrics.warning_count,
        )
        return result, metrics

    def run_schedule(
        self,
        repository: TaskRepository,
        *,
        origin: GeoPoint,
        current_time: datetime,
        policy: TimelinePolicy | str | None = None,
    ) -> tuple[PlanResult, SchedulingMetrics]:
        records = repository.list_tasks()
        outcome = self.location_service.resolve_tasks(records, origin)
        for record in outcome.newly_resolved:
            repository.update_task(
                record.id,
                lat=record.lat,
                lng=record.lng,
                address=record.address,
                location_query=record.location_query,
            )

        tasks = [record_to_task(record) for record in outcome.resolved]
        result, metrics = self.plan(tasks, origin=origin, start_time=current_time, policy=policy)
        result.unresolved_tasks = [record.id for record in outcome.unresolved]
        return result, metrics


def build_travel_oracle(settings: Settings) -> TravelOracle:
    geometric = HaversineTravelOracle(speed_kmh=settings.fallback_speed_kmh)
    if settings.travel_oracle == "HAVERSINE":
        return geometric
    if not settings.google_maps_api_key:
        logger.warning("TRAVEL_ORACLE=GOOGLE but GOOGLE_MAPS_API_KEY is unset; using straight-line estimates")
        return geometric
    directions = GoogleDirectionsOracle(
        settings.google_maps_api_key,
        timeout_seconds=settings.google_request_timeout_seconds,
    )
    return FallbackTravelOracle(primary=directions, fallback=geometric)


def record_to_task(record: TaskRecord) -> ErrandTask:
    return ErrandTask(
        task_id=record.id,
        title=record.title,
        location=GeoPoint(lat=record.lat, lng=record.lng),
        duration_minutes=record.duration_minutes,
        fixed_time=record.fixed_time,
        must_arrive_by=record.must_arrive_by,
        address=record.address,
    )


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _normalise_task(task: ErrandTask) -> ErrandTask:
    if task.must_arrive_by is None:
        return task
    return replace(task, must_arrive_by=_as_utc(task.must_arrive_by))


def _build_metrics(result: PlanResult) -> SchedulingMetrics:
    fixed_count = sum(1 for entry in result.entries if entry.is_fixed)
    return SchedulingMetrics(
        stop_count=len(result.entries),
        fixed_count=fixed_count,
        flexible_count=len(result.entries) - fixed_count,
        late_count=sum(1 for entry in result.entries if entry.status is StopStatus.LATE),
        tight_count=sum(1 for entry in result.entries if entry.status is StopStatus.TIGHT),
        total_travel_minutes=sum(entry.travel_minutes for entry in result.entries),
        warning_count=len(result.warnings),
    )
