from __future__ import annotations

from typing import Sequence

from .geo import haversine_km
from .models import DataQualityWarning, ErrandTask, GeoPoint, InvalidScheduleInput, SequenceResult

FIXED_WITHOUT_DEADLINE = "fixed_without_deadline"
DEADLINE_WITHOUT_FIXED = "deadline_without_fixed_flag"


def inspect_task(task: ErrandTask) -> DataQualityWarning | None:
    """Report a task whose fixed flag disagrees with its deadline."""

    if task.fixed_time and task.must_arrive_by is None:
        return DataQualityWarning(
            task_id=task.task_id,
            code=FIXED_WITHOUT_DEADLINE,
            message=f"Task {task.task_id!r} is marked fixed but has no deadline; scheduled as flexible",
        )
    if not task.fixed_time and task.must_arrive_by is not None:
        return DataQualityWarning(
            task_id=task.task_id,
            code=DEADLINE_WITHOUT_FIXED,
            message=f"Task {task.task_id!r} has a deadline but is not marked fixed; scheduled as fixed",
        )
    return None


def partition_tasks(
    tasks: Sequence[ErrandTask],
) -> tuple[list[ErrandTask], list[ErrandTask], list[DataQualityWarning]]:
    """Split tasks into deadline-bound and flexible groups, preserving input order.

    A task counts as fixed exactly when it carries a usable deadline.
    """

    fixed: list[ErrandTask] = []
    flexible: list[ErrandTask] = []
    warnings: list[DataQualityWarning] = []
    for task in tasks:
        warning = inspect_task(task)
        if warning is not None:
            warnings.append(warning)
        if task.has_deadline:
            fixed.append(task)
        else:
            flexible.append(task)
    return fixed, flexible, warnings


def sequence_tasks(tasks: Sequence[ErrandTask], origin: GeoPoint) -> SequenceResult:
    """Return the visit order: fixed stops by deadline, then flexible stops by proximity.

    Flexible stops are ranked by straight-line distance to a single anchor (the
    last fixed stop, or ``origin`` when there is none) rather than chained from
    stop to stop. Both sorts are stable, so ties keep their input order.
    """

    if not tasks:
        return SequenceResult(order=[], warnings=[])

    fixed, flexible, warnings = partition_tasks(tasks)
    try:
        fixed.sort(key=lambda task: task.must_arrive_by)
    except TypeError as exc:
        raise InvalidScheduleInput("deadlines mix naive and timezone-aware datetimes") from exc

    anchor = fixed[-1].location if fixed else origin
    flexible.sort(key=lambda task: haversine_km(anchor, task.location))

    return SequenceResult(order=fixed + flexible, warnings=warnings)


class Sequencer:
    """Stateless wrapper so the ordering step can be injected like other collaborators."""

    def sequence(self, tasks: Sequence[ErrandTask], origin: GeoPoint) -> SequenceResult:
        return sequence_tasks(tasks, origin)


__all__ = [
    "DEADLINE_WITHOUT_FIXED",
    "FIXED_WITHOUT_DEADLINE",
    "Sequencer",
    "inspect_task",
    "partition_tasks",
    "sequence_tasks",
]
