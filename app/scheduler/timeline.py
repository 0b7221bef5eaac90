from __future__ import annotations

import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Sequence

from .models import ErrandTask, InvalidScheduleInput, RouteLeg, ScheduleEntry, StopStatus

DEFAULT_DURATION_MINUTES = 30
ARRIVAL_BUFFER = timedelta(minutes=5)
TIGHT_THRESHOLD = timedelta(minutes=5)


class TimelinePolicy(str, Enum):
    FORWARD = "FORWARD"
    BACKWARD = "BACKWARD"


def travel_minutes(duration_seconds: float) -> int:
    """Convert leg seconds to whole minutes, always rounding up."""

    if duration_seconds is None or not math.isfinite(duration_seconds) or duration_seconds < 0:
        raise InvalidScheduleInput(f"travel duration must be a non-negative number of seconds, got {duration_seconds!r}")
    return math.ceil(duration_seconds / 60)


def service_minutes(task: ErrandTask) -> float:
    if task.duration_minutes is None:
        return DEFAULT_DURATION_MINUTES
    if not math.isfinite(task.duration_minutes) or task.duration_minutes < 0:
        raise InvalidScheduleInput(
            f"task {task.task_id!r} has invalid duration {task.duration_minutes!r}"
        )
    return task.duration_minutes


def classify_arrival(arrive_time: datetime, deadline: datetime) -> StopStatus:
    try:
        slack = deadline - arrive_time
    except TypeError as exc:
        raise InvalidScheduleInput("cannot compare naive and timezone-aware times") from exc
    if slack < timedelta(0):
        return StopStatus.LATE
    if slack < TIGHT_THRESHOLD:
        return StopStatus.TIGHT
    return StopStatus.ON_TIME


def forward_entry(task: ErrandTask, leg: RouteLeg, reference_time: datetime) -> ScheduleEntry:
    """Arrive as soon as possible after leaving the previous stop at ``reference_time``."""

    minutes = travel_minutes(leg.duration_seconds)
    arrive_time = reference_time + timedelta(minutes=minutes)
    depart_time = arrive_time + timedelta(minutes=service_minutes(task))

    status: StopStatus | None = None
    if task.has_deadline:
        status = classify_arrival(arrive_time, task.must_arrive_by)

    return ScheduleEntry(
        task_id=task.task_id,
        title=task.title,
        location=task.location,
        arrive_time=arrive_time,
        depart_time=depart_time,
        travel_minutes=minutes,
        is_fixed=task.has_deadline,
        deadline=task.must_arrive_by,
        status=status,
        address=task.address,
    )


def backward_entry(task: ErrandTask, leg: RouteLeg, reference_time: datetime) -> ScheduleEntry:
    """Latest safe departure for a deadline-bound stop.

    ``reference_time`` is the earliest moment the traveller can leave for this
    stop; it only feeds the status, which reflects whether leaving then still
    makes the deadline. Stops without a deadline get no timestamps.
    """

    minutes = travel_minutes(leg.duration_seconds)
    service_minutes(task)  # rejects negative durations

    if not task.has_deadline:
        return ScheduleEntry(
            task_id=task.task_id,
            title=task.title,
            location=task.location,
            arrive_time=None,
            depart_time=None,
            travel_minutes=minutes,
            is_fixed=False,
            address=task.address,
        )

    deadline = task.must_arrive_by
    arrive_time = deadline - ARRIVAL_BUFFER
    depart_time = arrive_time - timedelta(minutes=minutes)
    earliest_arrival = reference_time + timedelta(minutes=minutes)

    return ScheduleEntry(
        task_id=task.task_id,
        title=task.title,
        location=task.location,
        arrive_time=arrive_time,
        depart_time=depart_time,
        travel_minutes=minutes,
        is_fixed=True,
        deadline=deadline,
        status=classify_arrival(earliest_arrival, deadline),
        address=task.address,
    )


def _check_legs(ordered_tasks: Sequence[ErrandTask], legs: Sequence[RouteLeg]) -> None:
    if len(legs) != len(ordered_tasks):
        raise InvalidScheduleInput(
            f"expected one leg per stop: got {len(legs)} legs for {len(ordered_tasks)} tasks"
        )


def build_forward_timeline(
    ordered_tasks: Sequence[ErrandTask],
    legs: Sequence[RouteLeg],
    start_time: datetime,
) -> list[ScheduleEntry]:
    _check_legs(ordered_tasks, legs)
    entries: list[ScheduleEntry] = []
    clock = start_time
    for task, leg in zip(ordered_tasks, legs):
        entry = forward_entry(task, leg, clock)
        entries.append(entry)
        clock = entry.depart_time
    return entries


def build_backward_timeline(
    ordered_tasks: Sequence[ErrandTask],
    legs: Sequence[RouteLeg],
    start_time: datetime,
) -> list[ScheduleEntry]:
    _check_legs(ordered_tasks, legs)
    entries: list[ScheduleEntry] = []
    # The forward clock tells each stop when the traveller could leave for it.
    clock = start_time
    for task, leg in zip(ordered_tasks, legs):
        entries.append(backward_entry(task, leg, clock))
        clock = forward_entry(task, leg, clock).depart_time
    return entries


def build_timeline(
    ordered_tasks: Sequence[ErrandTask],
    legs: Sequence[RouteLeg],
    start_time: datetime,
    policy: TimelinePolicy = TimelinePolicy.FORWARD,
) -> list[ScheduleEntry]:
    if TimelinePolicy(policy) is TimelinePolicy.BACKWARD:
        return build_backward_timeline(ordered_tasks, legs, start_time)
    return build_forward_timeline(ordered_tasks, legs, start_time)


__all__ = [
    "ARRIVAL_BUFFER",
    "DEFAULT_DURATION_MINUTES",
    "TIGHT_THRESHOLD",
    "TimelinePolicy",
    "backward_entry",
    "build_backward_timeline",
    "build_forward_timeline",
    "build_timeline",
    "classify_arrival",
    "forward_entry",
    "service_minutes",
    "travel_minutes",
]
