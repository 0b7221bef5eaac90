"""Data access layer repositories."""

from . import tasks

__all__ = [
    "tasks",
]
