"""Unit tests for the seven-gate feature pipeline.

These tests assert that gate order is enforced without side effects and that
forced completion always leaves exactly one violation record.
"""

from __future__ import annotations

import pytest

from director_ops.core.errors import (
    AmbiguousReference,
    InvalidChoice,
    NotFound,
    OrderViolation,
    SecurityRejected,
    ValidationIncomplete,
)
from director_ops.features.models import GATE_CATALOGUE, Feature
from director_ops.features.pipeline import (
    VIOLATION_MESSAGE,
    FeatureFilter,
    FeaturePipeline,
    FeatureUpdate,
)


def _pass_gates(pipeline: FeaturePipeline, feature_id: str, upto: int) -> None:
    for gate_id in range(1, upto + 1):
        pipeline.validate_gate(feature_id, gate_id)


def test_new_feature_has_seven_pending_gates(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth", priority="high", director="engineering")

    assert [(g.id, g.name) for g in feature.gates] == [(i, n) for i, n, _ in GATE_CATALOGUE]
    assert all(g.status == "pending" for g in feature.gates)
    assert feature.status == "pending"
    assert feature.validation_status == "not_started"
    assert feature.director == "engineering"


def test_out_of_order_gate_raises_and_changes_nothing(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")
    before = feature.model_dump()

    with pytest.raises(OrderViolation) as excinfo:
        pipeline.validate_gate(feature.id, 3)

    assert excinfo.value.unmet_ids == [1, 2]
    assert excinfo.value.unmet == [(1, "isolation"), (2, "tests")]
    assert excinfo.value.gate == "runtime"
    assert feature.model_dump() == before


def test_failed_gate_blocks_the_next_one(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")
    pipeline.validate_gate(feature.id, "isolation", result="failed")

    with pytest.raises(OrderViolation) as excinfo:
        pipeline.validate_gate(feature.id, "tests")

    assert excinfo.value.unmet_ids == [1]


def test_gate_validation_records_progress(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")

    gate = pipeline.validate_gate(feature.id, "1", validator_id="qa-bot", notes="clean")

    assert gate.status == "passed"
    assert gate.passed_by == "qa-bot"
    assert gate.notes == "clean"
    assert gate.passed_at is not None
    assert feature.validation_status == "in_progress"
    assert feature.progress[-1].type == "gate_validation"
    assert feature.progress[-1].gate == "isolation"
    assert feature.progress[-1].result == "passed"


def test_full_lifecycle_completes_without_violation(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth", priority="high")
    _pass_gates(pipeline, feature.id, 7)

    report = pipeline.gate_report(feature.id)
    assert report.all_passed is True
    assert report.next_gate is None

    done = pipeline.complete_feature(feature.id)

    assert done.status == "completed"
    assert done.validation_status == "completed"
    assert done.completed_at is not None
    assert [p.type for p in done.progress].count("violation") == 0
    assert done.progress[-1].type == "completed"


def test_complete_without_force_requires_all_gates(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")
    _pass_gates(pipeline, feature.id, 3)
    before = feature.model_dump()

    with pytest.raises(ValidationIncomplete) as excinfo:
        pipeline.complete_feature(feature.id)

    assert (excinfo.value.passed, excinfo.value.total) == (3, 7)
    assert feature.model_dump() == before


def test_update_cannot_complete_a_feature(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")
    _pass_gates(pipeline, feature.id, 1)
    before = feature.model_dump()

    with pytest.raises(InvalidChoice) as excinfo:
        pipeline.update_feature(feature.id, FeatureUpdate(status="completed", notes="done"))

    assert "completed" not in excinfo.value.options
    assert feature.model_dump() == before
    assert feature.completed_at is None


def test_forced_completion_records_exactly_one_violation(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")
    _pass_gates(pipeline, feature.id, 2)

    done = pipeline.complete_feature(feature.id, force=True, notes="shipping anyway")

    violations = [p for p in done.progress if p.type == "violation"]
    assert len(violations) == 1
    assert violations[0].content == VIOLATION_MESSAGE
    assert done.progress[-1].type == "completed"
    assert done.progress[-1].content == "shipping anyway"
    assert done.status == "completed"


def test_gate_report_names_next_pending_gate(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")
    _pass_gates(pipeline, feature.id, 2)

    report = pipeline.gate_report(feature.id)

    assert report.passed == 2
    assert report.total == 7
    assert report.next_gate == "runtime"


def test_unknown_gate_and_result_are_rejected(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")

    with pytest.raises(NotFound):
        pipeline.validate_gate(feature.id, "deploy")
    with pytest.raises(NotFound):
        pipeline.validate_gate(feature.id, 8)
    with pytest.raises(InvalidChoice):
        pipeline.validate_gate(feature.id, 1, result="great")

    assert feature.gates[0].status == "pending"


def test_prefix_resolution(pipeline: FeaturePipeline) -> None:
    features = pipeline.feature_list.features
    features.append(Feature(id="abc", name="exact"))
    features.append(Feature(id="abcdef", name="longer"))
    features.append(Feature(id="xyz-123", name="unique"))

    assert pipeline.resolve("abc").name == "exact"
    assert pipeline.resolve("xyz").name == "unique"

    with pytest.raises(AmbiguousReference) as excinfo:
        pipeline.resolve("ab")
    assert excinfo.value.matches == ["abc", "abcdef"]

    with pytest.raises(NotFound):
        pipeline.resolve("nope")
    with pytest.raises(NotFound):
        pipeline.resolve("")


def test_add_feature_validates_input(pipeline: FeaturePipeline) -> None:
    with pytest.raises(InvalidChoice):
        pipeline.add_feature("auth", priority="urgent")

    with pytest.raises(SecurityRejected) as excinfo:
        pipeline.add_feature("auth", director="marketing")
    assert str(excinfo.value) == "Invalid director: marketing"

    assert pipeline.feature_list.features == []


def test_update_feature_checks_before_mutating(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")

    with pytest.raises(InvalidChoice):
        pipeline.update_feature(feature.id, FeatureUpdate(description="new", status="done"))
    assert feature.description == ""

    pipeline.update_feature(
        feature.id, FeatureUpdate(status="in_progress", priority="critical", notes="started")
    )
    assert feature.status == "in_progress"
    assert feature.priority == "critical"
    assert feature.progress[-1].type == "note"
    assert feature.progress[-1].content == "started"


def test_list_sorts_by_priority_keeping_insertion_order(pipeline: FeaturePipeline) -> None:
    pipeline.add_feature("low-1", priority="low")
    pipeline.add_feature("normal-1")
    pipeline.add_feature("critical-1", priority="critical")
    pipeline.add_feature("normal-2")
    pipeline.add_feature("high-1", priority="high", director="design")

    names = [f.name for f in pipeline.list_features()]
    assert names == ["critical-1", "high-1", "normal-1", "normal-2", "low-1"]

    by_director = pipeline.list_features(FeatureFilter(director="design"))
    assert [f.name for f in by_director] == ["high-1"]

    assert pipeline.summary() == {"pending": 5}


def test_show_feature_returns_a_copy(pipeline: FeaturePipeline) -> None:
    feature = pipeline.add_feature("auth")

    shown = pipeline.show_feature(feature.id[:6])
    shown.gates[0].status = "passed"

    assert feature.gates[0].status == "pending"
