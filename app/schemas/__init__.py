from .schedule import (
    GeoPointModel,
    LegInput,
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
from .task import TaskCollection, TaskCreate, TaskRead, TaskReplace

__all__ = [
    "GeoPointModel",
    "LegInput",
    "PlanRequest",
    "PlanTaskInput",
    "ScheduleEntryRead",
    "ScheduleRunRequest",
    "ScheduleRunResponse",
    "SequenceRequest",
    "SequenceResponse",
    "TaskCollection",
    "TaskCreate",
    "TaskRead",
    "TaskReplace",
    "TimelineRequest",
    "TimelineResponse",
    "WarningRead",
]
