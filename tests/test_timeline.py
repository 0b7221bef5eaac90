from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.scheduler.models import ErrandTask, GeoPoint, InvalidScheduleInput, RouteLeg, StopStatus
from app.scheduler.router import TimelineRouter
from app.scheduler.timeline import (
    TimelinePolicy,
    backward_entry,
    build_backward_timeline,
    build_forward_timeline,
    build_timeline,
    classify_arrival,
    forward_entry,
    travel_minutes,
)

POINT = GeoPoint(lat=30.6, lng=-96.3)


def _ts(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 1, 6, hour, minute, tzinfo=timezone.utc)


def _task(task_id: str, duration: float | None = 30, deadline: datetime | None = None) -> ErrandTask:
    return ErrandTask(
        task_id=task_id,
        title=f"Errand {task_id}",
        location=POINT,
        duration_minutes=duration,
        fixed_time=deadline is not None,
        must_arrive_by=deadline,
    )


def test_travel_minutes_round_up() -> None:
    assert travel_minutes(61) == 2
    assert travel_minutes(60) == 1
    assert travel_minutes(1) == 1
    assert travel_minutes(0) == 0
    assert travel_minutes(59.2) == 1


@pytest.mark.parametrize("seconds", [-1, float("nan"), float("inf"), None])
def test_travel_minutes_reject_invalid_seconds(seconds) -> None:
    with pytest.raises(InvalidScheduleInput):
        travel_minutes(seconds)


def test_classification_thresholds() -> None:
    deadline = _ts(9)

    assert classify_arrival(deadline + timedelta(minutes=1), deadline) is StopStatus.LATE
    assert classify_arrival(deadline - timedelta(minutes=3), deadline) is StopStatus.TIGHT
    assert classify_arrival(deadline - timedelta(minutes=10), deadline) is StopStatus.ON_TIME


def test_classification_boundaries() -> None:
    deadline = _ts(9)

    assert classify_arrival(deadline, deadline) is StopStatus.TIGHT
    assert classify_arrival(deadline + timedelta(seconds=1), deadline) is StopStatus.LATE
    assert classify_arrival(deadline - timedelta(minutes=5), deadline) is StopStatus.ON_TIME


def test_forward_timeline_accumulates_travel_and_service() -> None:
    tasks = [_task("a", duration=20), _task("b", duration=45)]
    legs = [RouteLeg(duration_seconds=600), RouteLeg(duration_seconds=61)]

    entries = build_forward_timeline(tasks, legs, _ts(8))

    assert entries[0].arrive_time == _ts(8, 10)
    assert entries[0].depart_time == _ts(8, 30)
    assert entries[1].travel_minutes == 2
    assert entries[1].arrive_time == _ts(8, 32)
    assert entries[1].depart_time == _ts(9, 17)


def test_forward_timeline_uses_default_duration() -> None:
    entries = build_forward_timeline([_task("a", duration=None)], [RouteLeg(duration_seconds=0)], _ts(8))

    assert entries[0].depart_time == _ts(8, 30)


def test_forward_timeline_classifies_fixed_stops_only() -> None:
    tasks = [
        _task("late", duration=10, deadline=_ts(8, 5)),
        _task("tight", duration=10, deadline=_ts(8, 30)),
        _task("free", duration=10),
        _task("on-time", duration=10, deadline=_ts(10)),
    ]
    legs = [RouteLeg(duration_seconds=600)] * 4

    entries = build_forward_timeline(tasks, legs, _ts(8))

    # Arrivals: 08:10, 08:30, 08:50, 09:10.
    assert [entry.status for entry in entries] == [
        StopStatus.LATE,
        StopStatus.TIGHT,
        None,
        StopStatus.ON_TIME,
    ]
    assert entries[0].is_late
    assert entries[2].is_fixed is False
    assert entries[2].deadline is None


def test_forward_entry_is_pure_function_of_inputs() -> None:
    task = _task("a", deadline=_ts(9))
    leg = RouteLeg(duration_seconds=300)

    assert forward_entry(task, leg, _ts(8)) == forward_entry(task, leg, _ts(8))


def test_backward_entry_counts_back_from_deadline() -> None:
    entry = backward_entry(_task("a", deadline=_ts(9)), RouteLeg(duration_seconds=721), _ts(7))

    assert entry.travel_minutes == 13
    assert entry.arrive_time == _ts(8, 55)
    assert entry.depart_time == _ts(8, 42)
    assert entry.status is StopStatus.ON_TIME


def test_backward_entry_flags_unreachable_deadline() -> None:
    entry = backward_entry(_task("a", deadline=_ts(9)), RouteLeg(duration_seconds=1200), _ts(8, 50))

    assert entry.status is StopStatus.LATE
    assert entry.depart_time == _ts(8, 35)


def test_backward_entry_leaves_flexible_stops_untimed() -> None:
    entry = backward_entry(_task("free"), RouteLeg(duration_seconds=300), _ts(8))

    assert entry.arrive_time is None
    assert entry.depart_time is None
    assert entry.status is None
    assert entry.travel_minutes == 5


def test_backward_timeline_uses_forward_clock_for_status() -> None:
    tasks = [_task("first", duration=60, deadline=_ts(9)), _task("second", duration=10, deadline=_ts(9, 15))]
    legs = [RouteLeg(duration_seconds=600), RouteLeg(duration_seconds=600)]

    entries = build_backward_timeline(tasks, legs, _ts(8))

    assert entries[1].depart_time == _ts(9)
    # The first stop keeps the traveller busy until 09:10, so 09:20 arrival misses 09:15.
    assert entries[1].status is StopStatus.LATE


def test_leg_count_mismatch_is_rejected() -> None:
    tasks = [_task("a"), _task("b")]

    with pytest.raises(InvalidScheduleInput):
        build_timeline(tasks, [RouteLeg(duration_seconds=60)], _ts(8))
    with pytest.raises(InvalidScheduleInput):
        build_timeline(tasks, [RouteLeg(duration_seconds=60)] * 3, _ts(8), TimelinePolicy.BACKWARD)


def test_negative_duration_is_rejected() -> None:
    with pytest.raises(InvalidScheduleInput):
        build_timeline([_task("a", duration=-5)], [RouteLeg(duration_seconds=60)], _ts(8))
    with pytest.raises(InvalidScheduleInput):
        build_timeline([_task("a", duration=-5)], [RouteLeg(duration_seconds=60)], _ts(8), "BACKWARD")


def test_naive_start_with_aware_deadline_is_rejected() -> None:
    naive_start = datetime(2025, 1, 6, 8, 0)
    tasks = [_task("a", deadline=_ts(9))]

    with pytest.raises(InvalidScheduleInput):
        build_timeline(tasks, [RouteLeg(duration_seconds=60)], naive_start)
    with pytest.raises(InvalidScheduleInput):
        build_timeline(tasks, [RouteLeg(duration_seconds=60)], naive_start, TimelinePolicy.BACKWARD)


def test_empty_inputs_give_empty_timeline() -> None:
    assert build_timeline([], [], _ts(8)) == []
    assert build_timeline([], [], _ts(8), TimelinePolicy.BACKWARD) == []


def test_build_timeline_is_idempotent() -> None:
    tasks = [_task("a", deadline=_ts(9)), _task("b")]
    legs = [RouteLeg(duration_seconds=900), RouteLeg(duration_seconds=125)]

    assert build_timeline(tasks, legs, _ts(8)) == build_timeline(tasks, legs, _ts(8))


def test_router_resolves_explicit_and_configured_policy() -> None:
    router = TimelineRouter()

    policy, builder = router.resolve("BACKWARD")
    assert policy is TimelinePolicy.BACKWARD
    assert builder is build_backward_timeline

    policy, builder = router.resolve()
    assert policy is TimelinePolicy.FORWARD
    assert builder is build_forward_timeline
