"""Unit tests for the daily progress log."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from director_ops.core.errors import InvalidChoice, InvalidValue, NotFound
from director_ops.progress.log import ProgressLog

JAN_1 = date(2026, 1, 1)
JAN_5 = date(2026, 1, 5)


@pytest.fixture
def progress(tmp_path: Path) -> ProgressLog:
    log = ProgressLog(tmp_path / "progress_log")
    log.log("auth schema drafted", feature="auth", director="architecture", today=JAN_1)
    log.log("auth tokens issued", type="milestone", feature="auth", director="engineering", today=JAN_5)
    log.log("Auth review booked", type="decision", director="engineering", tags=["review"], today=JAN_5)
    log.log("docs outline", feature="docs", today=date(2025, 12, 1))
    return log


def test_entries_are_grouped_by_day(progress: ProgressLog, tmp_path: Path) -> None:
    assert progress.dates() == ["2026-01-05", "2026-01-01", "2025-12-01"]
    assert (tmp_path / "progress_log" / "2026-01-05.json").exists()

    day = progress.view("2026-01-05")
    assert day.day == "2026-01-05"
    assert [e.type for e in day.entries] == ["milestone", "decision"]


def test_view_missing_day(progress: ProgressLog) -> None:
    with pytest.raises(NotFound):
        progress.view("2026-02-01")
    with pytest.raises(InvalidValue):
        progress.view("yesterday")


def test_search_is_case_insensitive_and_newest_first(progress: ProgressLog) -> None:
    matches = progress.search("AUTH")

    assert [m.message for m in matches] == [
        "Auth review booked",
        "auth tokens issued",
        "auth schema drafted",
    ]
    assert len(progress.search("auth", limit=2)) == 2
    assert [m.message for m in progress.search("review")] == ["Auth review booked"]


def test_summary_counts_recent_days(progress: ProgressLog) -> None:
    report = progress.summary(days=7, today=date(2026, 1, 6))

    assert report.dates == ["2026-01-05", "2026-01-01"]
    assert report.total == 3
    assert report.by_type == {"progress": 1, "milestone": 1, "decision": 1}
    assert report.by_director == {"engineering": 2, "architecture": 1}
    assert report.top_features == [("auth", 2)]


def test_log_rejects_unknown_type_and_blank_message(tmp_path: Path) -> None:
    log = ProgressLog(tmp_path)

    with pytest.raises(InvalidChoice):
        log.log("something", type="rumour")
    with pytest.raises(InvalidValue):
        log.log("   ")
    assert log.dates() == []
