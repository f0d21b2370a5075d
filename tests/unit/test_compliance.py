"""Unit tests for the memory-bank structure checks."""

from __future__ import annotations

from pathlib import Path

from director_ops.compliance.checks import compliance_report, daily_check
from director_ops.hive.models import DIRECTORS


def _write(path: Path, text: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _populate(root: Path) -> Path:
    bank = root / "memory-bank"
    _write(bank / "constitutional" / "CONSTITUTION.md", "ARTICLE I\n...\nARTICLE VIII\n")
    _write(bank / "core" / "EXECUTION_POLICY.md", "## QUALITY GATES\n")
    _write(bank / "active" / "activeContext.md", "current focus")
    (bank / "feature_lists").mkdir(parents=True)
    (bank / "progress_log").mkdir(parents=True)
    for name in DIRECTORS:
        _write(root / "directors" / f"{name}-director.md")
    for name in ("qa", "runtime", "stubs"):
        _write(root / "teams" / "validation" / f"{name}.md")
    return bank


def test_daily_check_passes_on_complete_tree(tmp_path: Path) -> None:
    bank = _populate(tmp_path)

    report = daily_check(bank, tmp_path)

    assert report.ok
    assert report.warnings == []
    assert "Director present: security" in report.passed


def test_daily_check_grades_findings(tmp_path: Path) -> None:
    bank = tmp_path / "memory-bank"
    _write(bank / "constitutional" / "CONSTITUTION.md", "ARTICLE I only")
    _write(tmp_path / "agents" / "engineering.md")
    _write(tmp_path / "teams" / "validation" / "qa.md")

    report = daily_check(bank, tmp_path)

    assert not report.ok
    assert "Constitution may be incomplete (missing articles)" in report.warnings
    assert "Execution Policy not found" in report.failed
    assert "Director present: engineering" in report.passed
    assert "Missing director: design" in report.failed
    assert "Validation team incomplete" in report.warnings
    assert "No active context file" in report.warnings


def test_compliance_report_percentage(tmp_path: Path) -> None:
    bank = _populate(tmp_path)
    assert compliance_report(bank, tmp_path).percentage == 100

    empty = compliance_report(tmp_path / "other-bank", tmp_path / "other-root")
    assert empty.passed == 0
    assert empty.failed == 7
    assert empty.percentage == 0
    assert "Initialize feature tracking" in empty.recommendations
    assert "Create validation team directory" in empty.recommendations
