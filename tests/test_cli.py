import json

import pytest

from cli import main


@pytest.fixture(autouse=True)
def cli_env(monkeypatch):
    monkeypatch.setenv("TASKREC_TIMEZONE", "UTC")
    monkeypatch.setenv("TASKREC_LENIENT_MATCHING", "0")
    monkeypatch.delenv("TASKREC_TASKS_FILE", raising=False)


@pytest.fixture
def tasks_file(tmp_path):
    path = tmp_path / "tasks.jsonl"
    records = [
        {
            "id": "plants",
            "title": "Water plants",
            "priority": "high",
            "deadline": "2024-01-01",
            "isRecurring": True,
            "recurringType": "weekly",
            "recurringInterval": 2,
            "recurringEndDate": "2024-02-01",
        },
        {
            "id": "dentist",
            "title": "Dentist appointment",
            "priority": "low",
            "deadline": {"seconds": 1705312800, "nanoseconds": 0},
        },
    ]
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path


def test_occurrences_daily(capsys):
    exit_code = main(
        ["occurrences", "--type", "daily", "--start", "2024-01-01", "--end", "2024-01-05"]
    )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Daily until 2024-01-05: 5 occurrence(s)" in out
    assert [line for line in out.splitlines() if line.startswith(" - ")] == [
        " - 2024-01-01",
        " - 2024-01-02",
        " - 2024-01-03",
        " - 2024-01-04",
        " - 2024-01-05",
    ]


def test_occurrences_reports_truncation(capsys):
    exit_code = main(
        ["occurrences", "--type", "daily", "--start", "2024-01-01", "--end", "2030-01-01"]
    )

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "730 occurrence(s)" in captured.out
    assert "Stopped after 730 occurrences" in captured.err


def test_occurs_on_strict_and_lenient(capsys):
    base = ["occurs-on", "--type", "weekly", "--interval", "2", "--start", "2024-01-01",
            "--date", "2024-01-08"]

    assert main(base) == 0
    assert capsys.readouterr().out.strip().endswith(": no")

    assert main(base + ["--lenient"]) == 0
    assert capsys.readouterr().out.strip().endswith(": yes")


def test_next(capsys):
    exit_code = main(
        ["next", "--type", "monthly", "--start", "2024-01-31", "--after", "2024-02-29"]
    )
    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "2024-03-31"


def test_invalid_date_is_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["occurrences", "--type", "daily", "--start", "soon"])
    assert excinfo.value.code == 2


def test_calendar_from_file(capsys, tasks_file):
    exit_code = main(
        ["calendar", "--month", "2024-01", "--source", "file", "--tasks-file", str(tasks_file)]
    )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "2024-01-01 (Mon): 1 task(s)" in out
    assert "2024-01-15 (Mon): 2 task(s)" in out
    assert "2024-01-29 (Mon): 1 task(s)" in out
    assert "2024-01-08" not in out
    assert "Water plants (Every 2 weeks on Monday until 2024-02-01)" in out


def test_day_uses_env_for_lenient_matching(capsys, monkeypatch, tasks_file):
    args = ["day", "--date", "2024-01-08", "--source", "file", "--tasks-file", str(tasks_file)]

    assert main(args) == 0
    assert "No tasks on 2024-01-08." in capsys.readouterr().out

    monkeypatch.setenv("TASKREC_LENIENT_MATCHING", "1")
    assert main(args) == 0
    assert "Water plants" in capsys.readouterr().out


def test_list_with_filters(capsys, tasks_file):
    exit_code = main(
        ["list", "--source", "file", "--tasks-file", str(tasks_file),
         "--search", "dentist", "--sort", "priority"]
    )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "dentist | Dentist appointment | pending | low | 2024-01-15 | -" in out
    assert "plants" not in out


def test_list_file_source_missing_file(capsys, tmp_path):
    exit_code = main(["list", "--source", "file", "--tasks-file", str(tmp_path / "nope.jsonl")])

    assert exit_code == 1
    assert "Could not load tasks" in capsys.readouterr().err


def test_list_auto_falls_back_to_stub(capsys):
    exit_code = main(["list", "--source", "auto", "--upcoming", "1"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "No tasks file configured; showing sample tasks." in out
    assert "stub-weekly" in out
    assert "Next 1 occurrence(s) after" in out


def test_check_config(capsys):
    assert main(["check-config"]) == 0
    assert "timezone=UTC" in capsys.readouterr().out


def test_check_config_bad_timezone(capsys, monkeypatch):
    monkeypatch.setenv("TASKREC_TIMEZONE", "Nowhere/Land")
    assert main(["check-config"]) == 1
    assert "Unknown timezone" in capsys.readouterr().err


def test_list_file_source_undecodable_file(capsys, tmp_path):
    tasks_file = tmp_path / "tasks.jsonl"
    tasks_file.write_bytes(b'{"id": "1", "title": "\xff\xfe"}\n')

    exit_code = main(["list", "--source", "file", "--tasks-file", str(tasks_file)])

    assert exit_code == 1
    assert "Could not load tasks" in capsys.readouterr().err
