"""Feature and gate records persisted in a feature list document."""

from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from director_ops.state.manager import Document, utc_now_iso

Priority = Literal["low", "normal", "high", "critical"]
FeatureStatus = Literal["pending", "in_progress", "blocked", "validating", "completed"]
UpdatableStatus = Literal["pending", "in_progress", "blocked", "validating"]
GateStatus = Literal["pending", "passed", "failed", "skipped"]
ValidationStatus = Literal["not_started", "in_progress", "completed"]
ProgressType = Literal["note", "gate_validation", "violation", "completed"]

PRIORITIES: tuple[str, ...] = ("low", "normal", "high", "critical")
FEATURE_STATUSES: tuple[str, ...] = ("pending", "in_progress", "blocked", "validating", "completed")
# "completed" is reachable only through complete_feature.
UPDATABLE_STATUSES: tuple[str, ...] = ("pending", "in_progress", "blocked", "validating")
GATE_STATUSES: tuple[str, ...] = ("pending", "passed", "failed", "skipped")

# Sort rank for listing: lower sorts first.
PRIORITY_RANK: dict[str, int] = {"critical": 0, "high": 1, "normal": 2, "low": 3}

# (ordinal, name, description) in pipeline order.
GATE_CATALOGUE: tuple[tuple[int, str, str], ...] = (
    (1, "isolation", "Feature Isolation Test"),
    (2, "tests", "Feature Test Execution (>80% coverage)"),
    (3, "runtime", "Runtime Validation"),
    (4, "stubs", "Stub Detection"),
    (5, "qa", "QA Validation"),
    (6, "production", "Production Validation"),
    (7, "constitutional", "Constitutional Review"),
)
GATE_COUNT = len(GATE_CATALOGUE)


class Gate(BaseModel):
    id: int = Field(ge=1, le=GATE_COUNT)
    name: str
    description: str
    status: GateStatus = "pending"
    passed_at: str | None = None
    passed_by: str | None = None
    notes: str = ""


def new_gates() -> list[Gate]:
    return [Gate(id=i, name=name, description=desc) for i, name, desc in GATE_CATALOGUE]


class ProgressEntry(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    type: ProgressType
    content: str = ""
    gate: str | None = None
    result: str | None = None


class Feature(BaseModel):
    """A tracked unit of work.

    Invariants: `gates` always holds the seven catalogue gates in ordinal
    order; `status == "completed"` implies all gates passed or a `violation`
    entry exists in `progress`.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    director: str | None = None
    priority: Priority = "normal"
    status: FeatureStatus = "pending"
    validation_status: ValidationStatus = "not_started"
    gates: list[Gate] = Field(default_factory=new_gates)
    dependencies: list[str] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)
    progress: list[ProgressEntry] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    completed_at: str | None = None

    @field_validator("gates")
    @classmethod
    def _gates_in_order(cls, gates: list[Gate]) -> list[Gate]:
        ids = [g.id for g in gates]
        if ids != list(range(1, GATE_COUNT + 1)):
            raise ValueError(f"gates must be ordinals 1..{GATE_COUNT} in order, got {ids}")
        return gates

    @property
    def passed_gates(self) -> int:
        return sum(1 for g in self.gates if g.status == "passed")

    def touch(self) -> None:
        self.updated_at = utc_now_iso()


class FeatureList(Document):
    """A named feature list document."""

    name: str = "active"
    features: list[Feature] = Field(default_factory=list)
