"""Seven-gate validation pipeline over one loaded feature list.

Gates must pass strictly in ascending ordinal order. A feature completes
normally only when all seven gates passed; a forced completion is allowed but
always leaves a `violation` entry in the feature's progress log.

Every operation checks all preconditions before touching the feature, so a
failure leaves the document exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel

from director_ops.core.errors import (
    InvalidChoice,
    NotFound,
    OrderViolation,
    ValidationIncomplete,
)
from director_ops.core.refs import resolve_reference
from director_ops.features.models import (
    GATE_COUNT,
    GATE_STATUSES,
    PRIORITIES,
    PRIORITY_RANK,
    UPDATABLE_STATUSES,
    Feature,
    FeatureList,
    Gate,
    ProgressEntry,
)
from director_ops.security.validator import InputValidator, require_safe
from director_ops.state.manager import utc_now_iso

logger = logging.getLogger(__name__)

VIOLATION_MESSAGE = "Forced completion without full gate validation"


@dataclass(frozen=True, slots=True)
class FeatureUpdate:
    """Fields applied by `update_feature`. None leaves a field untouched."""

    status: str | None = None
    description: str | None = None
    director: str | None = None
    priority: str | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class FeatureFilter:
    status: str | None = None
    director: str | None = None


class GateReport(BaseModel):
    feature_id: str
    feature_name: str
    gates: list[Gate]
    passed: int
    total: int
    all_passed: bool
    next_gate: str | None = None


def _check_choice(value: str, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise InvalidChoice(choice=value, options=list(allowed))


class FeaturePipeline:
    """Feature lifecycle operations over one `FeatureList` document."""

    def __init__(self, feature_list: FeatureList, validator: InputValidator) -> None:
        self.feature_list = feature_list
        self.validator = validator

    def resolve(self, feature_ref: str) -> Feature:
        return resolve_reference(
            self.feature_list.features, feature_ref, key=lambda f: f.id, entity="Feature"
        )

    def add_feature(
        self,
        name: str,
        *,
        description: str = "",
        director: str | None = None,
        priority: str = "normal",
        dependencies: list[str] | None = None,
    ) -> Feature:
        _check_choice(priority, PRIORITIES)
        if director:
            require_safe(self.validator, director, "director")

        feature = Feature(
            name=name,
            description=description,
            director=director or None,
            priority=priority,  # type: ignore[arg-type]
            dependencies=[d.strip() for d in dependencies or [] if d.strip()],
        )
        self.feature_list.features.append(feature)

        logger.info(
            "Feature added",
            extra={"feature_id": feature.id, "feature": name, "priority": priority},
        )
        return feature

    def update_feature(self, feature_ref: str, update: FeatureUpdate) -> Feature:
        """Apply `update` to a feature.

        Completion is not an update: `status="completed"` raises `InvalidChoice`
        and callers go through `complete_feature`, which audits forced completions.
        """
        feature = self.resolve(feature_ref)
        if update.status:
            _check_choice(update.status, UPDATABLE_STATUSES)
        if update.priority:
            _check_choice(update.priority, PRIORITIES)
        if update.director:
            require_safe(self.validator, update.director, "director")

        if update.status:
            feature.status = update.status  # type: ignore[assignment]
        if update.description:
            feature.description = update.description
        if update.director:
            feature.director = update.director
        if update.priority:
            feature.priority = update.priority  # type: ignore[assignment]
        if update.notes:
            feature.progress.append(ProgressEntry(type="note", content=update.notes))

        feature.touch()
        logger.info("Feature updated", extra={"feature_id": feature.id, "status": feature.status})
        return feature

    def _find_gate(self, feature: Feature, gate_ref: int | str) -> Gate:
        ref = str(gate_ref).strip()
        for gate in feature.gates:
            if gate.name == ref or (ref.isdigit() and gate.id == int(ref)):
                return gate
        raise NotFound(entity="Gate", reference=ref)

    def validate_gate(
        self,
        feature_ref: str,
        gate_ref: int | str,
        *,
        result: str = "passed",
        validator_id: str = "cli",
        notes: str = "",
    ) -> Gate:
        """Record a gate result once every earlier gate has passed.

        Raises:
            NotFound: Unknown feature or gate.
            InvalidChoice: `result` is not a gate status.
            OrderViolation: Some earlier gate has not passed; nothing is changed.
        """
        feature = self.resolve(feature_ref)
        gate = self._find_gate(feature, gate_ref)
        _check_choice(result, GATE_STATUSES)

        unmet = [(g.id, g.name) for g in feature.gates if g.id < gate.id and g.status != "passed"]
        if unmet:
            logger.warning(
                "Gate order violation",
                extra={"feature_id": feature.id, "gate": gate.name, "unmet": unmet},
            )
            raise OrderViolation(gate=gate.name, unmet=unmet)

        now = utc_now_iso()
        gate.status = result  # type: ignore[assignment]
        gate.passed_at = now
        gate.passed_by = validator_id
        gate.notes = notes
        feature.progress.append(
            ProgressEntry(timestamp=now, type="gate_validation", gate=gate.name, result=result)
        )
        if feature.validation_status == "not_started":
            feature.validation_status = "in_progress"
        feature.updated_at = now

        logger.info(
            "Gate validated",
            extra={"feature_id": feature.id, "gate": gate.name, "result": result},
        )
        return gate

    def gate_report(self, feature_ref: str) -> GateReport:
        feature = self.resolve(feature_ref)
        passed = feature.passed_gates
        next_gate = next((g.name for g in feature.gates if g.status == "pending"), None)
        return GateReport(
            feature_id=feature.id,
            feature_name=feature.name,
            gates=[g.model_copy() for g in feature.gates],
            passed=passed,
            total=GATE_COUNT,
            all_passed=passed == GATE_COUNT,
            next_gate=None if passed == GATE_COUNT else next_gate,
        )

    def complete_feature(
        self, feature_ref: str, *, force: bool = False, notes: str | None = None
    ) -> Feature:
        """Mark a feature completed.

        Raises:
            ValidationIncomplete: Fewer than seven gates passed and `force` is false.
        """
        feature = self.resolve(feature_ref)
        passed = feature.passed_gates
        if passed < GATE_COUNT and not force:
            logger.warning(
                "Completion refused",
                extra={"feature_id": feature.id, "passed": passed, "total": GATE_COUNT},
            )
            raise ValidationIncomplete(passed=passed, total=GATE_COUNT)

        now = utc_now_iso()
        if passed < GATE_COUNT:
            logger.warning(
                "Constitutional violation: completing without full validation",
                extra={"feature_id": feature.id, "passed": passed, "total": GATE_COUNT},
            )
            feature.progress.append(
                ProgressEntry(timestamp=now, type="violation", content=VIOLATION_MESSAGE)
            )

        feature.status = "completed"
        feature.completed_at = now
        feature.updated_at = now
        feature.validation_status = "completed"
        feature.progress.append(
            ProgressEntry(timestamp=now, type="completed", content=notes or "Feature completed")
        )

        logger.info("Feature completed", extra={"feature_id": feature.id, "passed": passed})
        return feature

    def show_feature(self, feature_ref: str) -> Feature:
        return self.resolve(feature_ref).model_copy(deep=True)

    def list_features(self, criteria: FeatureFilter | None = None) -> list[Feature]:
        criteria = criteria or FeatureFilter()
        features = [
            f
            for f in self.feature_list.features
            if (criteria.status is None or f.status == criteria.status)
            and (criteria.director is None or f.director == criteria.director)
        ]
        # sorted() is stable: equal priorities keep insertion order.
        return sorted(features, key=lambda f: PRIORITY_RANK.get(f.priority, PRIORITY_RANK["normal"]))

    def summary(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for feature in self.feature_list.features:
            counts[feature.status] = counts.get(feature.status, 0) + 1
        return counts
