from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.scheduler.geo import haversine_km
from app.scheduler.models import ErrandTask, GeoPoint, InvalidScheduleInput
from app.scheduler.sequencer import (
    DEADLINE_WITHOUT_FIXED,
    FIXED_WITHOUT_DEADLINE,
    Sequencer,
    partition_tasks,
    sequence_tasks,
)

ORIGIN = GeoPoint(lat=30.0, lng=-96.0)


def _ts(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 1, 6, hour, minute, tzinfo=timezone.utc)


def _task(task_id: str, lat: float, lng: float = -96.0, deadline: datetime | None = None) -> ErrandTask:
    return ErrandTask(
        task_id=task_id,
        title=f"Errand {task_id}",
        location=GeoPoint(lat=lat, lng=lng),
        fixed_time=deadline is not None,
        must_arrive_by=deadline,
    )


def test_empty_task_list_yields_empty_order() -> None:
    result = sequence_tasks([], ORIGIN)

    assert result.order == []
    assert result.warnings == []


def test_fixed_task_precedes_closer_flexible_task() -> None:
    near_flexible = _task("a", 30.001)
    far_fixed = _task("b", 30.5, deadline=_ts(9))

    result = sequence_tasks([near_flexible, far_fixed], ORIGIN)

    assert result.task_ids == ["b", "a"]


def test_fixed_tasks_are_ordered_by_deadline() -> None:
    nine = _task("nine", 30.01, deadline=_ts(9))
    half_eight = _task("half-eight", 30.2, deadline=_ts(8, 30))

    result = sequence_tasks([nine, half_eight], ORIGIN)

    assert result.task_ids == ["half-eight", "nine"]


def test_single_fixed_task_is_the_whole_order() -> None:
    only = _task("only", 30.3, deadline=_ts(10))

    assert sequence_tasks([only], ORIGIN).task_ids == ["only"]


def test_flexible_tasks_rank_by_distance_to_origin_without_fixed_tasks() -> None:
    tasks = [_task("far", 30.3), _task("near", 30.01), _task("mid", 30.1)]

    assert sequence_tasks(tasks, ORIGIN).task_ids == ["near", "mid", "far"]


def test_flexible_tasks_rank_by_distance_to_last_fixed_stop() -> None:
    anchor = _task("anchor", 31.0, deadline=_ts(9))
    # Close to the origin but far from the anchor.
    by_origin = _task("by-origin", 30.01)
    by_anchor = _task("by-anchor", 30.95)

    result = sequence_tasks([by_origin, anchor, by_anchor], ORIGIN)

    assert result.task_ids == ["anchor", "by-anchor", "by-origin"]


def test_single_anchor_sort_does_not_chain_between_stops() -> None:
    # From the origin "east" is nearest, but "west-far" is nearer to "east" than "west-near" is;
    # a chained walk would visit west-far second, the static sort does not.
    east = _task("east", 30.0, lng=-95.98)
    west_near = _task("west-near", 30.0, lng=-96.03)
    west_far = _task("west-far", 30.0, lng=-95.94)

    result = sequence_tasks([west_far, west_near, east], ORIGIN)

    assert result.task_ids == ["east", "west-near", "west-far"]


def test_equal_distances_keep_input_order() -> None:
    tasks = [_task("first", 30.1), _task("second", 30.1), _task("third", 30.1)]

    assert sequence_tasks(tasks, ORIGIN).task_ids == ["first", "second", "third"]


def test_equal_deadlines_keep_input_order() -> None:
    tasks = [_task("x", 30.2, deadline=_ts(9)), _task("y", 30.1, deadline=_ts(9))]

    assert sequence_tasks(tasks, ORIGIN).task_ids == ["x", "y"]


def test_output_is_a_permutation_of_the_input() -> None:
    tasks = [
        _task("f1", 30.4, deadline=_ts(11)),
        _task("x1", 30.2),
        _task("f2", 30.1, deadline=_ts(9)),
        _task("x2", 29.9),
        _task("x3", 30.05, lng=-96.2),
    ]

    result = sequence_tasks(tasks, ORIGIN)

    assert sorted(result.task_ids) == sorted(task.task_id for task in tasks)
    assert len(result.order) == len(tasks)


def test_fixed_block_leads_and_is_non_decreasing() -> None:
    tasks = [
        _task("x1", 30.001),
        _task("f3", 30.9, deadline=_ts(12)),
        _task("x2", 30.002),
        _task("f1", 30.8, deadline=_ts(8)),
        _task("f2", 30.7, deadline=_ts(10)),
    ]

    order = sequence_tasks(tasks, ORIGIN).order
    deadlines = [task.must_arrive_by for task in order if task.has_deadline]

    assert [task.has_deadline for task in order] == [True, True, True, False, False]
    assert deadlines == sorted(deadlines)


def test_fixed_task_without_deadline_is_treated_as_flexible_with_warning() -> None:
    broken = ErrandTask(task_id="broken", title="Broken", location=GeoPoint(30.2, -96.0), fixed_time=True)
    fixed = _task("fixed", 30.5, deadline=_ts(9))

    result = sequence_tasks([broken, fixed], ORIGIN)

    assert result.task_ids == ["fixed", "broken"]
    assert [(w.task_id, w.code) for w in result.warnings] == [("broken", FIXED_WITHOUT_DEADLINE)]


def test_deadline_without_fixed_flag_is_treated_as_fixed_with_warning() -> None:
    flagless = ErrandTask(
        task_id="flagless",
        title="Flagless",
        location=GeoPoint(30.5, -96.0),
        must_arrive_by=_ts(9),
    )
    flexible = _task("flexible", 30.001)

    result = sequence_tasks([flexible, flagless], ORIGIN)

    assert result.task_ids == ["flagless", "flexible"]
    assert result.warnings[0].code == DEADLINE_WITHOUT_FIXED


def test_partition_preserves_input_order() -> None:
    tasks = [_task("a", 30.1), _task("b", 30.2, deadline=_ts(9)), _task("c", 30.3), _task("d", 30.4, deadline=_ts(8))]

    fixed, flexible, warnings = partition_tasks(tasks)

    assert [task.task_id for task in fixed] == ["b", "d"]
    assert [task.task_id for task in flexible] == ["a", "c"]
    assert warnings == []


def test_sequence_is_deterministic_and_does_not_mutate_input() -> None:
    tasks = [_task("a", 30.3), _task("b", 30.1, deadline=_ts(9)), _task("c", 30.2)]
    snapshot = list(tasks)

    first = Sequencer().sequence(tasks, ORIGIN)
    second = Sequencer().sequence(tasks, ORIGIN)

    assert first == second
    assert tasks == snapshot


def test_mixed_naive_and_aware_deadlines_are_rejected() -> None:
    tasks = [
        _task("aware", 30.1, deadline=_ts(9)),
        _task("naive", 30.2, deadline=datetime(2025, 1, 6, 10, 0)),
    ]

    with pytest.raises(InvalidScheduleInput):
        sequence_tasks(tasks, ORIGIN)


def test_haversine_is_stable_for_antipodal_points() -> None:
    distance = haversine_km(GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0))

    assert distance == pytest.approx(20015.09, rel=1e-4)


def test_out_of_range_coordinates_are_rejected() -> None:
    with pytest.raises(InvalidScheduleInput):
        GeoPoint(lat=91.0, lng=0.0)
