"""Configuration for director-ops.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Pydantic-settings supports overriding the env file in tests via
`DirectorOpsSettings(_env_file=path_to_env)`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DirectorOpsSettings(BaseSettings):
    """Settings shared by the CLI and the REST adapter.

    Environment variables:
    - LOG_LEVEL                     (optional)
    - DIRECTOR_OPS_LOG_FORMAT       (optional, json | text)
    - DIRECTOR_OPS_MEMORY_BANK      (optional)
    - DIRECTOR_OPS_SESSION_PATH     (optional)
    - DIRECTOR_OPS_FEATURE_LIST     (optional)
    - DIRECTOR_OPS_VALIDATOR        (optional, strict | permissive)
    - DIRECTOR_OPS_RESTRICT_VOTERS  (optional)
    - DIRECTOR_OPS_PROJECT_ROOT     (optional)
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        validation_alias="DIRECTOR_OPS_LOG_FORMAT",
        description="Log line format",
    )

    memory_bank_path: Path = Field(
        default=Path("memory-bank"),
        validation_alias="DIRECTOR_OPS_MEMORY_BANK",
        description="Directory holding the feature lists and the hive document",
    )
    project_root: Path = Field(
        default=Path("."),
        validation_alias="DIRECTOR_OPS_PROJECT_ROOT",
        description="Directory holding the `directors/` and `teams/` trees checked by validation",
    )
    session_path: Path = Field(
        default=Path(".director-ops/sessions"),
        validation_alias="DIRECTOR_OPS_SESSION_PATH",
        description="Directory where session documents are persisted",
    )
    default_feature_list: str = Field(
        default="active",
        validation_alias="DIRECTOR_OPS_FEATURE_LIST",
        description="Feature list used when a command does not name one",
    )

    validator_mode: Literal["strict", "permissive"] = Field(
        default="strict",
        validation_alias="DIRECTOR_OPS_VALIDATOR",
        description=(
            "Input validator selected at startup. 'strict' applies the director, path and "
            "handoff-context rules; 'permissive' accepts all input."
        ),
    )
    restrict_voters: bool = Field(
        default=False,
        validation_alias="DIRECTOR_OPS_RESTRICT_VOTERS",
        description="If true, only the eight directors may vote on consensus requests.",
    )

    # Dev-friendly CORS for the REST adapter. Override via DIRECTOR_OPS_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="DIRECTOR_OPS_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def feature_lists_dir(self) -> Path:
        """Directory holding one JSON document per feature list."""

        return self.memory_bank_path / "feature_lists"

    @property
    def hive_state_dir(self) -> Path:
        return self.memory_bank_path / "active"

    @property
    def hive_state_file(self) -> Path:
        """Path where the hive coordination document is persisted."""

        return self.hive_state_dir / "hive-progress.json"

    @property
    def progress_log_dir(self) -> Path:
        return self.memory_bank_path / "progress_log"

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
