"""Test configuration and fixtures."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from director_ops.core.config import DirectorOpsSettings
from director_ops.core.context import DirectorOpsContext
from director_ops.features.models import FeatureList
from director_ops.features.pipeline import FeaturePipeline
from director_ops.hive.coordination import HiveCoordinator
from director_ops.hive.models import HiveState
from director_ops.security.validator import StrictValidator


@pytest.fixture
def memory_bank(tmp_path: Path) -> Path:
    """Provide a temporary memory bank directory."""
    return tmp_path / "memory-bank"


@pytest.fixture
def settings(tmp_path: Path, memory_bank: Path) -> DirectorOpsSettings:
    """Provide settings rooted in a temporary directory, ignoring any local .env."""
    return DirectorOpsSettings(
        _env_file=None,
        DIRECTOR_OPS_MEMORY_BANK=memory_bank,
        DIRECTOR_OPS_SESSION_PATH=tmp_path / "sessions",
        DIRECTOR_OPS_PROJECT_ROOT=tmp_path,
    )


@pytest.fixture
def context(settings: DirectorOpsSettings) -> DirectorOpsContext:
    return DirectorOpsContext.from_settings(settings)


@pytest.fixture
def pipeline() -> FeaturePipeline:
    """Provide a pipeline over an empty in-memory feature list."""
    return FeaturePipeline(FeatureList(), StrictValidator())


@pytest.fixture
def hive() -> HiveCoordinator:
    """Provide a coordinator over a fresh in-memory hive document."""
    return HiveCoordinator(HiveState(), StrictValidator())


@pytest.fixture
def cli_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, memory_bank: Path
) -> Iterator[Path]:
    """Point the CLI at temporary storage and run it from an empty directory.

    The CLI reconfigures root logging; handlers are restored afterwards.
    """
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DIRECTOR_OPS_MEMORY_BANK", str(memory_bank))
    monkeypatch.setenv("DIRECTOR_OPS_SESSION_PATH", str(tmp_path / "sessions"))
    monkeypatch.setenv("DIRECTOR_OPS_LOG_FORMAT", "text")
    monkeypatch.delenv("DIRECTOR_OPS_VALIDATOR", raising=False)
    monkeypatch.delenv("DIRECTOR_OPS_RESTRICT_VOTERS", raising=False)
    monkeypatch.delenv("DIRECTOR_OPS_FEATURE_LIST", raising=False)
    monkeypatch.delenv("DIRECTOR_OPS_PROJECT_ROOT", raising=False)
    yield memory_bank
    root.handlers[:] = handlers
    root.setLevel(level)
