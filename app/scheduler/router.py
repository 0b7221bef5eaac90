from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from app.core.config import get_settings

from .models import ErrandTask, RouteLeg, ScheduleEntry
from .timeline import TimelinePolicy, build_backward_timeline, build_forward_timeline

TimelineBuilder = Callable[[Sequence[ErrandTask], Sequence[RouteLeg], datetime], list[ScheduleEntry]]


def get_active_policy() -> TimelinePolicy:
    """Return the timeline policy specified in settings."""

    settings = get_settings()
    return TimelinePolicy(settings.timeline_policy)


class TimelineRouter:
    """Maps a timeline policy to the builder implementing it."""

    def __init__(
        self,
        forward_builder: TimelineBuilder = build_forward_timeline,
        backward_builder: TimelineBuilder = build_backward_timeline,
    ) -> None:
        self._forward_builder = forward_builder
        self._backward_builder = backward_builder

    def resolve(self, policy: TimelinePolicy | str | None = None) -> tuple[TimelinePolicy, TimelineBuilder]:
        active = TimelinePolicy(policy) if policy is not None else get_active_policy()
        if active is TimelinePolicy.BACKWARD:
            return active, self._backward_builder
        return active, self._forward_builder
