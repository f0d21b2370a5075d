"""Structure checks over the memory bank and project tree.

`daily_check` inspects file contents and grades each finding as passed,
warning or failed. `compliance_report` only checks that the expected files
and directories exist. Neither check writes anything.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from director_ops.hive.models import DIRECTORS
from director_ops.state.manager import utc_now_iso

logger = logging.getLogger(__name__)

CONSTITUTION = Path("constitutional/CONSTITUTION.md")
EXECUTION_POLICY = Path("core/EXECUTION_POLICY.md")
ACTIVE_CONTEXT = Path("active/activeContext.md")
VALIDATION_TEAM = Path("teams/validation")
MIN_VALIDATORS = 3

_RECOMMENDATIONS = {
    "Validation Team": "Create validation team directory",
    "Feature Lists": "Initialize feature tracking",
}


class DailyReport(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    passed: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class ComplianceCheck(BaseModel):
    name: str
    path: str
    passed: bool


class ComplianceReport(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    checks: list[ComplianceCheck]
    passed: int
    failed: int
    percentage: int
    recommendations: list[str] = Field(default_factory=list)


def _read(path: Path) -> str | None:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8", errors="replace")


def directors_dir(project_root: Path) -> Path | None:
    """`directors/`, falling back to the older `agents/` layout."""
    for name in ("directors", "agents"):
        candidate = project_root / name
        if candidate.is_dir():
            return candidate
    return None


def daily_check(memory_bank: Path, project_root: Path) -> DailyReport:
    report = DailyReport()

    constitution = _read(memory_bank / CONSTITUTION)
    if constitution is None:
        report.failed.append("Constitution file not found")
    elif "ARTICLE I" in constitution and "ARTICLE VIII" in constitution:
        report.passed.append("Constitution file present with all articles")
    else:
        report.warnings.append("Constitution may be incomplete (missing articles)")

    policy = _read(memory_bank / EXECUTION_POLICY)
    if policy is None:
        report.failed.append("Execution Policy not found")
    elif "QUALITY GATES" in policy:
        report.passed.append("Execution Policy with Quality Gates present")
    else:
        report.warnings.append("Execution Policy missing Quality Gates section")

    directory = directors_dir(project_root)
    if directory is None:
        report.failed.append("Directors directory not found")
    else:
        files = [p.name for p in directory.glob("*.md")]
        for name in DIRECTORS:
            if any(name in f for f in files):
                report.passed.append(f"Director present: {name}")
            else:
                report.failed.append(f"Missing director: {name}")

    team = project_root / VALIDATION_TEAM
    if not team.is_dir():
        report.warnings.append("Validation team directory not found")
    elif len(list(team.iterdir())) >= MIN_VALIDATORS:
        report.passed.append("Validation team present")
    else:
        report.warnings.append("Validation team incomplete")

    if (memory_bank / ACTIVE_CONTEXT).is_file():
        report.passed.append("Active context present")
    else:
        report.warnings.append("No active context file")

    logger.info(
        "Daily check finished",
        extra={
            "passed": len(report.passed),
            "warnings": len(report.warnings),
            "failed": len(report.failed),
        },
    )
    return report


def compliance_report(memory_bank: Path, project_root: Path) -> ComplianceReport:
    directory = directors_dir(project_root)
    expected = [
        ("Constitution", memory_bank / CONSTITUTION),
        ("Execution Policy", memory_bank / EXECUTION_POLICY),
        ("Directors", directory or project_root / "directors"),
        ("Validation Team", project_root / VALIDATION_TEAM),
        ("Active Context", memory_bank / "active"),
        ("Feature Lists", memory_bank / "feature_lists"),
        ("Progress Log", memory_bank / "progress_log"),
    ]
    checks = [
        ComplianceCheck(name=name, path=str(path), passed=path.exists())
        for name, path in expected
    ]
    passed = sum(1 for c in checks if c.passed)
    percentage = round(passed / len(checks) * 100)
    recommendations = [
        _RECOMMENDATIONS.get(c.name, f"Create {c.path}") for c in checks if not c.passed
    ]

    logger.info("Compliance report built", extra={"percentage": percentage})
    return ComplianceReport(
        checks=checks,
        passed=passed,
        failed=len(checks) - passed,
        percentage=percentage,
        recommendations=recommendations,
    )
