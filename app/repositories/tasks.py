from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """An errand in the working set, possibly not yet resolved to coordinates."""

    id: str
    title: str
    location_query: str | None = None
    address: str | None = None
    lat: float | None = None
    lng: float | None = None
    duration_minutes: float | None = None
    fixed_time: bool = False
    must_arrive_by: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @property
    def is_resolved(self) -> bool:
        return self.lat is not None and self.lng is not None


class TaskRepository:
    """Process-local working set of errands. Ids are never reused."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._items: dict[str, TaskRecord] = {}

    def list_tasks(self) -> list[TaskRecord]:
        with self._lock:
            return list(self._items.values())

    def get_task(self, task_id: str) -> TaskRecord | None:
        with self._lock:
            return self._items.get(task_id)

    def create_task(self, **fields) -> TaskRecord:
        with self._lock:
            record = TaskRecord(id=f"task-{next(self._ids)}", **fields)
            self._items[record.id] = record
            return record

    def replace_tasks(self, payloads: Iterable[dict]) -> list[TaskRecord]:
        with self._lock:
            self._items.clear()
            for fields in payloads:
                record = TaskRecord(id=f"task-{next(self._ids)}", **fields)
                self._items[record.id] = record
            return list(self._items.values())

    def update_task(self, task_id: str, **changes) -> TaskRecord | None:
        with self._lock:
            current = self._items.get(task_id)
            if current is None:
                return None
            updated = replace(current, **changes)
            self._items[task_id] = updated
            return updated

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            return self._items.pop(task_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


_repository = TaskRepository()


def get_task_repository() -> TaskRepository:
    """FastAPI dependency returning the shared working set."""

    return _repository
