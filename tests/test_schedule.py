"""Tests for calendar marks, day views and task list filtering."""
from __future__ import annotations

from datetime import date, datetime

import pytest

from task_recurrence.schedule import (
    TaskFilters,
    filter_tasks,
    mark_calendar,
    tasks_for_day,
    upcoming_occurrences,
)
from task_recurrence.tasks import RecurringTask


def _task(
    task_id: str,
    *,
    due_date=None,
    recurring_type=None,
    interval=1,
    end=None,
    **extra,
) -> RecurringTask:
    return RecurringTask(
        id=task_id,
        title=extra.pop("title", f"Task {task_id}"),
        due_date=due_date,
        is_recurring=recurring_type is not None,
        recurring_type=recurring_type,
        recurring_interval=interval,
        recurring_end_date=end,
        **extra,
    )


@pytest.fixture
def january_tasks():
    return [
        _task("biweekly", due_date=date(2024, 1, 1), recurring_type="weekly", interval=2),
        _task(
            "daily",
            due_date=datetime(2024, 1, 30, 7, 0),
            recurring_type="daily",
            end=date(2024, 2, 2),
        ),
        _task("once", due_date=date(2024, 1, 20)),
        _task("february", due_date=date(2024, 2, 3)),
        _task("undated"),
    ]


# =============================================================================
# Calendar marks
# =============================================================================

class TestMarkCalendar:
    """Tests for month calendar marks."""

    def test_marks_recurring_and_one_off_tasks(self, january_tasks):
        marks = mark_calendar(january_tasks, 2024, 1)

        assert list(marks) == [
            date(2024, 1, 1),
            date(2024, 1, 15),
            date(2024, 1, 20),
            date(2024, 1, 29),
            date(2024, 1, 30),
            date(2024, 1, 31),
        ]
        assert [t.id for t in marks[date(2024, 1, 20)]] == ["once"]
        assert [t.id for t in marks[date(2024, 1, 30)]] == ["daily"]

    def test_next_month_only_has_remaining_occurrences(self, january_tasks):
        marks = mark_calendar(january_tasks, 2024, 2)

        assert [t.id for t in marks[date(2024, 2, 1)]] == ["daily"]
        assert [t.id for t in marks[date(2024, 2, 3)]] == ["february"]
        assert [t.id for t in marks[date(2024, 2, 12)]] == ["biweekly"]
        assert date(2024, 2, 5) not in marks

    def test_empty_month(self, january_tasks):
        assert mark_calendar(january_tasks, 2023, 6) == {}

    def test_marks_agree_with_day_view(self, january_tasks):
        marks = mark_calendar(january_tasks, 2024, 1)
        for day in range(1, 32):
            current = date(2024, 1, day)
            expected = [t.id for t in marks.get(current, [])]
            assert [t.id for t in tasks_for_day(january_tasks, current)] == expected


# =============================================================================
# Day view
# =============================================================================

class TestTasksForDay:
    """Tests for the day detail list."""

    def test_strict_respects_interval(self, january_tasks):
        assert tasks_for_day(january_tasks, date(2024, 1, 8)) == []

    def test_lenient_ignores_weekly_interval(self, january_tasks):
        matches = tasks_for_day(january_tasks, date(2024, 1, 8), strict=False)
        assert [t.id for t in matches] == ["biweekly"]

    def test_datetime_day(self, january_tasks):
        matches = tasks_for_day(january_tasks, datetime(2024, 1, 31, 22, 0))
        assert [t.id for t in matches] == ["daily"]


class TestUnknownRecurrenceType:
    """Tasks flagged recurring with an unsupported type act as one-offs."""

    @pytest.fixture
    def yearly(self):
        return _task("yearly", due_date=date(2024, 1, 20), recurring_type="yearly")

    def test_marked_on_due_date(self, yearly):
        marks = mark_calendar([yearly], 2024, 1)
        assert list(marks) == [date(2024, 1, 20)]

    def test_listed_on_due_date_only(self, yearly):
        assert tasks_for_day([yearly], date(2024, 1, 20)) == [yearly]
        assert tasks_for_day([yearly], date(2024, 1, 21)) == []

    def test_upcoming_is_due_date(self, yearly):
        assert upcoming_occurrences(yearly, after=date(2024, 1, 1)) == [date(2024, 1, 20)]


def test_upcoming_occurrences(january_tasks):
    biweekly, daily, once = january_tasks[:3]

    assert upcoming_occurrences(biweekly, after=date(2024, 1, 1), limit=2) == [
        date(2024, 1, 15),
        date(2024, 1, 29),
    ]
    assert upcoming_occurrences(daily, after=date(2024, 1, 31)) == [
        datetime(2024, 2, 1, 7, 0),
        datetime(2024, 2, 2, 7, 0),
    ]
    assert upcoming_occurrences(once, after=date(2024, 1, 1)) == [date(2024, 1, 20)]
    assert upcoming_occurrences(once, after=date(2024, 1, 20)) == []


# =============================================================================
# Filtering
# =============================================================================

@pytest.fixture
def list_tasks():
    return [
        _task("a", title="Write report", due_date=date(2024, 1, 5), priority="low",
              category="Work", status="in_progress"),
        _task("b", title="Buy milk", due_date=date(2024, 1, 2), priority="high",
              category="Home", description="Also REPORT the broken fridge"),
        _task("c", title="Call mom", priority="medium", completed=True, status="in_progress"),
        _task("d", title="Plan trip", due_date=datetime(2024, 1, 3, 12, 0), priority="high"),
    ]


class TestFilterTasks:
    """Tests for search, status and sort."""

    def test_default_sorts_by_deadline_with_missing_first(self, list_tasks):
        assert [t.id for t in filter_tasks(list_tasks)] == ["c", "b", "d", "a"]

    def test_search_title_and_description(self, list_tasks):
        result = filter_tasks(list_tasks, TaskFilters(search_query="report"))
        assert [t.id for t in result] == ["b", "a"]

    def test_status_in_progress_excludes_completed(self, list_tasks):
        result = filter_tasks(list_tasks, TaskFilters(status="in_progress"))
        assert [t.id for t in result] == ["a"]

    def test_status_completed(self, list_tasks):
        result = filter_tasks(list_tasks, TaskFilters(status="completed"))
        assert [t.id for t in result] == ["c"]

    def test_status_pending(self, list_tasks):
        result = filter_tasks(list_tasks, TaskFilters(status="pending"))
        assert [t.id for t in result] == ["b", "d"]

    def test_sort_by_priority(self, list_tasks):
        result = filter_tasks(list_tasks, TaskFilters(sort_key="priority"))
        assert [t.id for t in result] == ["b", "d", "c", "a"]

    def test_sort_by_category(self, list_tasks):
        result = filter_tasks(list_tasks, TaskFilters(sort_key="category"))
        assert [t.id for t in result] == ["c", "d", "b", "a"]

    def test_unknown_sort_key(self, list_tasks):
        with pytest.raises(ValueError):
            filter_tasks(list_tasks, TaskFilters(sort_key="title"))

    def test_input_is_not_mutated(self, list_tasks):
        before = [t.id for t in list_tasks]
        filter_tasks(list_tasks, TaskFilters(sort_key="priority"))
        assert [t.id for t in list_tasks] == before
