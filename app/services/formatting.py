from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Sequence

from app.scheduler.models import DataQualityWarning, ScheduleEntry, StopStatus
from app.scheduler.timeline import TimelinePolicy

STATUS_LABELS = {
    StopStatus.LATE: "[LATE]",
    StopStatus.TIGHT: "[TIGHT]",
    StopStatus.ON_TIME: "[ON TIME]",
}


def _clock(value: datetime, tz: tzinfo | None) -> str:
    local = value.astimezone(tz) if tz is not None else value
    return local.strftime("%I:%M %p").lstrip("0")


def render_entry(
    index: int,
    entry: ScheduleEntry,
    *,
    policy: TimelinePolicy = TimelinePolicy.FORWARD,
    tz: tzinfo | None = None,
) -> str:
    head = f"{index}. "
    if entry.status is not None:
        head += STATUS_LABELS[entry.status] + " "
    lines = [head + entry.title]
    if entry.address:
        lines.append(f"   at {entry.address}")

    if policy is TimelinePolicy.BACKWARD:
        if entry.depart_time is None:
            lines.append("   Leave whenever")
        else:
            lines.append(f"   Leave by: {_clock(entry.depart_time, tz)}")
            lines.append(f"   Arrive: {_clock(entry.arrive_time, tz)}")
    else:
        lines.append(f"   Arrive: {_clock(entry.arrive_time, tz)}")

    lines.append(f"   {entry.travel_minutes} min travel")
    if entry.deadline is not None:
        lines.append(f"   Must arrive by {_clock(entry.deadline, tz)}")
    return "\n".join(lines)


def render_schedule_text(
    entries: Sequence[ScheduleEntry],
    *,
    policy: TimelinePolicy = TimelinePolicy.FORWARD,
    warnings: Sequence[DataQualityWarning] = (),
    tz: tzinfo | None = None,
) -> str:
    """Render a schedule as the chat-style text shown to the user."""

    if not entries:
        return "No stops to schedule."

    policy = TimelinePolicy(policy)
    body = "\n\n".join(
        render_entry(index, entry, policy=policy, tz=tz) for index, entry in enumerate(entries, start=1)
    )
    text = f"Here's your optimized schedule:\n\n{body}"
    if warnings:
        text += "\n\nWarnings:\n" + "\n".join(f"- {warning.message}" for warning in warnings)
    return text


__all__ = ["STATUS_LABELS", "render_entry", "render_schedule_text"]
