"""Schedule views - calendar marks, day lists and task list filtering."""
from __future__ import annotations

from .calendar import mark_calendar, tasks_for_day, upcoming_occurrences
from .filters import SORT_KEYS, STATUS_FILTERS, TaskFilters, filter_tasks

__all__ = [
    "mark_calendar",
    "tasks_for_day",
    "upcoming_occurrences",
    "TaskFilters",
    "filter_tasks",
    "SORT_KEYS",
    "STATUS_FILTERS",
]
