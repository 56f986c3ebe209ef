"""Search, status filtering and sorting for task lists."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from ..tasks import RecurringTask, TaskPriority, TaskStatus

STATUS_FILTERS = ("all", "completed", "in_progress", "pending")
SORT_KEYS = ("deadline", "priority", "category")

PRIORITY_ORDER = {
    TaskPriority.HIGH.value: 0,
    TaskPriority.MEDIUM.value: 1,
    TaskPriority.LOW.value: 2,
}


@dataclass(slots=True)
class TaskFilters:
    """Filter criteria for listing tasks."""

    search_query: Optional[str] = None
    status: str = "all"
    sort_key: str = "deadline"


def _deadline_key(task: RecurringTask) -> Tuple[int, float]:
    # Tasks without a deadline sort first
    due = task.due_date
    if due is None:
        return (0, 0.0)
    if not isinstance(due, datetime):
        due = datetime.combine(due, datetime.min.time())
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return (1, due.timestamp())


def _matches_search(task: RecurringTask, query: str) -> bool:
    needle = query.lower()
    return needle in task.title.lower() or needle in (task.description or "").lower()


def _matches_status(task: RecurringTask, status: str) -> bool:
    if status == "completed":
        return task.completed
    if status == TaskStatus.IN_PROGRESS.value:
        return not task.completed and task.status == TaskStatus.IN_PROGRESS.value
    if status == TaskStatus.PENDING.value:
        return not task.completed and task.status == TaskStatus.PENDING.value
    return True


def filter_tasks(tasks: Iterable[RecurringTask], filters: Optional[TaskFilters] = None) -> List[RecurringTask]:
    """Apply search, status and sort criteria to a task list.

    Raises:
        ValueError: for an unknown status filter or sort key
    """
    filters = filters or TaskFilters()
    if filters.status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {filters.status}")
    if filters.sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {filters.sort_key}")

    result = list(tasks)

    if filters.search_query:
        result = [t for t in result if _matches_search(t, filters.search_query)]

    if filters.status != "all":
        result = [t for t in result if _matches_status(t, filters.status)]

    if filters.sort_key == "deadline":
        result.sort(key=_deadline_key)
    elif filters.sort_key == "priority":
        result.sort(key=lambda t: PRIORITY_ORDER.get(t.priority, len(PRIORITY_ORDER)))
    else:
        result.sort(key=lambda t: t.category or "")

    return result
