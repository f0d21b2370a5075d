"""Per-invocation context.

Built once by an adapter (CLI command, REST request) and handed to every
operation. Nothing here is process-global.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from director_ops.compliance.checks import (
    ComplianceReport,
    DailyReport,
    compliance_report,
    daily_check,
)
from director_ops.core.config import DirectorOpsSettings
from director_ops.features.models import FeatureList
from director_ops.features.pipeline import FeaturePipeline
from director_ops.hive.coordination import HiveCoordinator
from director_ops.hive.models import HiveState
from director_ops.progress.log import ProgressLog
from director_ops.security.validator import InputValidator, build_validator, require_safe
from director_ops.sessions.manager import SessionManager
from director_ops.state.manager import DocumentStore

logger = logging.getLogger(__name__)

HIVE_DOCUMENT_KEY = "hive-progress"


@dataclass
class DirectorOpsContext:
    settings: DirectorOpsSettings
    validator: InputValidator
    feature_store: DocumentStore[FeatureList] = field(init=False)
    hive_store: DocumentStore[HiveState] = field(init=False)
    sessions: SessionManager = field(init=False)
    progress: ProgressLog = field(init=False)

    def __post_init__(self) -> None:
        self.feature_store = DocumentStore(
            self.settings.feature_lists_dir,
            FeatureList,
            default_factory=lambda key: FeatureList(name=key),
        )
        self.hive_store = DocumentStore(self.settings.hive_state_dir, HiveState)
        self.sessions = SessionManager(self.settings.session_path)
        self.progress = ProgressLog(self.settings.progress_log_dir)

    @classmethod
    def from_settings(cls, settings: DirectorOpsSettings) -> DirectorOpsContext:
        return cls(settings=settings, validator=build_validator(settings.validator_mode))

    def _list_key(self, list_name: str | None) -> str:
        name = list_name or self.settings.default_feature_list
        return require_safe(self.validator, name, "path")

    def load_features(self, list_name: str | None = None) -> FeaturePipeline:
        return FeaturePipeline(self.feature_store.load(self._list_key(list_name)), self.validator)

    def save_features(self, pipeline: FeaturePipeline, list_name: str | None = None) -> None:
        # Always the requested key; the stored `name` field may differ from the filename.
        self.feature_store.save(self._list_key(list_name), pipeline.feature_list)

    @contextmanager
    def features(self, list_name: str | None = None) -> Iterator[FeaturePipeline]:
        """Load a feature list, yield its pipeline, and save it if the block succeeds."""
        pipeline = self.load_features(list_name)
        yield pipeline
        self.save_features(pipeline, list_name)

    def load_hive(self) -> HiveCoordinator:
        return HiveCoordinator(
            self.hive_store.load(HIVE_DOCUMENT_KEY),
            self.validator,
            restrict_voters=self.settings.restrict_voters,
        )

    def save_hive(self, coordinator: HiveCoordinator) -> None:
        self.hive_store.save(HIVE_DOCUMENT_KEY, coordinator.state)

    @contextmanager
    def hive(self) -> Iterator[HiveCoordinator]:
        """Load the hive document, yield its coordinator, and save it if the block succeeds."""
        coordinator = self.load_hive()
        yield coordinator
        self.save_hive(coordinator)

    def daily_check(self) -> DailyReport:
        return daily_check(self.settings.memory_bank_path, self.settings.project_root)

    def compliance_report(self) -> ComplianceReport:
        return compliance_report(self.settings.memory_bank_path, self.settings.project_root)
