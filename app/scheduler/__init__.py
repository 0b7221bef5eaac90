from .models import (
    DataQualityWarning,
    ErrandTask,
    GeoPoint,
    InvalidScheduleInput,
    RouteLeg,
    ScheduleEntry,
    SequenceResult,
    StopStatus,
)
from .router import TimelineRouter, get_active_policy
from .sequencer import Sequencer, sequence_tasks
from .timeline import TimelinePolicy, backward_entry, build_timeline, classify_arrival, forward_entry, travel_minutes

__all__ = [
    "DataQualityWarning",
    "ErrandTask",
    "GeoPoint",
    "InvalidScheduleInput",
    "RouteLeg",
    "ScheduleEntry",
    "SequenceResult",
    "Sequencer",
    "StopStatus",
    "TimelinePolicy",
    "TimelineRouter",
    "backward_entry",
    "build_timeline",
    "classify_arrival",
    "forward_entry",
    "get_active_policy",
    "sequence_tasks",
    "travel_minutes",
]
