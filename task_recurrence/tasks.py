"""Task records as stored by the mobile app, and their recurrence rules."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from .recurrence import RecurrenceKind, RecurrenceRule, describe_rule, normalize_interval
from .timestamps import normalize_timestamp, serialize_timestamp

DateLike = Union[date, datetime]


class TaskValidationError(ValueError):
    """Raised when a task fails creation-time validation."""


class TaskStatus(str, Enum):
    """Task status values used by the app."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority levels used by the app."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(slots=True)
class RecurringTask:
    """A task document from ``users/{user_id}/tasks``.

    ``due_date`` holds the task deadline, which is the anchor of the
    recurrence for recurring tasks.
    """

    id: str
    title: str
    description: str = ""
    priority: str = TaskPriority.MEDIUM.value
    status: str = TaskStatus.PENDING.value
    category: Optional[str] = None
    completed: bool = False
    user_id: Optional[str] = None
    created_at: Optional[DateLike] = None
    completed_at: Optional[DateLike] = None
    due_date: Optional[DateLike] = None

    # Recurrence fields
    is_recurring: bool = False
    recurring_type: Optional[str] = None
    recurring_interval: int = 1
    recurring_end_date: Optional[DateLike] = None

    @property
    def anchor(self) -> Optional[DateLike]:
        return self.due_date

    def recurrence_rule(self) -> Optional[RecurrenceRule]:
        """Return the task's recurrence rule, or None for one-off tasks."""
        if not self.is_recurring:
            return None
        return RecurrenceRule(
            kind=RecurrenceKind.parse(self.recurring_type),
            start=self.due_date,
            interval=self.recurring_interval,
            end=self.recurring_end_date,
        )

    def recurrence_display(self) -> str:
        rule = self.recurrence_rule()
        return describe_rule(rule) if rule else ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the app's document format (camelCase, ISO timestamps)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "category": self.category,
            "completed": self.completed,
            "userId": self.user_id,
            "createdAt": serialize_timestamp(self.created_at),
            "completedAt": serialize_timestamp(self.completed_at),
            "deadline": serialize_timestamp(self.due_date),
            "isRecurring": self.is_recurring,
            "recurringType": self.recurring_type,
            "recurringInterval": self.recurring_interval,
            "recurringEndDate": serialize_timestamp(self.recurring_end_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, tz: Optional[tzinfo] = None) -> "RecurringTask":
        """Create from a stored document.

        Raises:
            KeyError: if ``id`` or ``title`` is missing
            TimestampError: if a timestamp field cannot be read
        """
        deadline = data.get("deadline")
        if deadline is None:
            deadline = data.get("dueDate")

        return cls(
            id=str(data["id"]),
            title=data["title"],
            description=data.get("description") or "",
            priority=data.get("priority") or TaskPriority.MEDIUM.value,
            status=data.get("status") or TaskStatus.PENDING.value,
            category=data.get("category"),
            completed=bool(data.get("completed", False)),
            user_id=data.get("userId"),
            created_at=normalize_timestamp(data.get("createdAt"), tz=tz),
            completed_at=normalize_timestamp(data.get("completedAt"), tz=tz),
            due_date=normalize_timestamp(deadline, tz=tz),
            is_recurring=bool(data.get("isRecurring", False)),
            recurring_type=data.get("recurringType"),
            recurring_interval=normalize_interval(data.get("recurringInterval")),
            recurring_end_date=normalize_timestamp(data.get("recurringEndDate"), tz=tz),
        )


def _as_comparable(value: DateLike, reference: DateLike) -> DateLike:
    if isinstance(reference, datetime) and not isinstance(value, datetime):
        return datetime.combine(value, datetime.min.time(), tzinfo=reference.tzinfo)
    if not isinstance(reference, datetime) and isinstance(value, datetime):
        return value.date()
    if isinstance(value, datetime) and (value.tzinfo is None) != (reference.tzinfo is None):
        return value.replace(tzinfo=reference.tzinfo)
    return value


def validate_recurring_task(task: RecurringTask) -> None:
    """Check a task before it is saved.

    Raises:
        TaskValidationError: describing the first problem found
    """
    if not task.title or not task.title.strip():
        raise TaskValidationError("Please fill in the task title")

    if not task.is_recurring:
        return

    if task.due_date is None:
        raise TaskValidationError("Recurring tasks need a start date")

    if RecurrenceKind.parse(task.recurring_type) is RecurrenceKind.NONE:
        raise TaskValidationError(
            f"Unknown recurrence type: {task.recurring_type!r} "
            "(expected daily, weekly or monthly)"
        )

    if task.recurring_end_date is not None:
        end = _as_comparable(task.recurring_end_date, task.due_date)
        if end <= task.due_date:
            raise TaskValidationError("End date must be after the start date")


def fetch_stubbed_tasks(*, today: Optional[date] = None, limit: Optional[int] = None) -> List[RecurringTask]:
    """Return a deterministic list of placeholder tasks."""

    today = today or date.today()
    sample: List[RecurringTask] = [
        RecurringTask(
            id="stub-daily",
            title="Morning stretch",
            description="Ten minutes of stretching before work.",
            priority=TaskPriority.MEDIUM.value,
            category="Health",
            due_date=today,
            is_recurring=True,
            recurring_type=RecurrenceKind.DAILY.value,
            recurring_interval=1,
            recurring_end_date=today + timedelta(days=30),
        ),
        RecurringTask(
            id="stub-weekly",
            title="Team sync notes",
            description="Summarize the weekly sync and share action items.",
            priority=TaskPriority.HIGH.value,
            category="Work",
            due_date=today,
            is_recurring=True,
            recurring_type=RecurrenceKind.WEEKLY.value,
            recurring_interval=2,
        ),
        RecurringTask(
            id="stub-monthly",
            title="Pay rent",
            priority=TaskPriority.HIGH.value,
            category="Finance",
            due_date=today.replace(day=1),
            is_recurring=True,
            recurring_type=RecurrenceKind.MONTHLY.value,
            recurring_interval=1,
        ),
        RecurringTask(
            id="stub-once",
            title="Renew passport",
            description="Book an appointment and bring two photos.",
            priority=TaskPriority.LOW.value,
            status=TaskStatus.IN_PROGRESS.value,
            category="Personal",
            due_date=today + timedelta(days=3),
        ),
    ]

    if limit is None:
        return sample[:]
    return sample[:limit]


def format_task_rows(tasks: Iterable[RecurringTask]) -> str:
    """Return a human-friendly summary table string."""

    lines = ["ID | Title | Status | Priority | Due | Repeats"]
    for task in tasks:
        due = f"{task.due_date:%Y-%m-%d}" if task.due_date else "-"
        repeats = task.recurrence_display() or "-"
        lines.append(
            f"{task.id} | {task.title} | {task.status} | {task.priority} | "
            f"{due} | {repeats}"
        )
    return "\n".join(lines)
