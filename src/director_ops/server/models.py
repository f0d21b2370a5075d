"""Pydantic request bodies for the REST server."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from director_ops.features.models import Priority, UpdatableStatus
from director_ops.hive.models import DirectorStatus
from director_ops.progress.log import LogEntryType


class FeatureCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    director: str | None = None
    priority: Priority = "normal"
    dependencies: list[str] = Field(default_factory=list)


class FeaturePatch(BaseModel):
    status: UpdatableStatus | None = None
    description: str | None = None
    director: str | None = None
    priority: Priority | None = None
    notes: str | None = None


class GateValidationRequest(BaseModel):
    result: Literal["pending", "passed", "failed", "skipped"] = "passed"
    validator: str = "api"
    notes: str = ""


class CompletionRequest(BaseModel):
    force: bool = False
    notes: str | None = None


class HiveInitRequest(BaseModel):
    clear_all: bool = False


class DirectorSyncRequest(BaseModel):
    status: DirectorStatus = "active"
    task: str | None = None
    blocker: str | None = None
    clear_blockers: bool = False


class BroadcastRequest(BaseModel):
    message: str = Field(min_length=1)
    sender: str = "system"
    priority: str = "normal"
    targets: list[str] | None = None


class ConsensusCreate(BaseModel):
    topic: str = Field(min_length=1)
    description: str = ""
    options: list[str] | None = None
    required_votes: int | None = Field(default=None, ge=1)
    deadline: str | None = None


class VoteRequest(BaseModel):
    voter: str = "anonymous"
    choice: str
    notes: str = ""


class HandoffCreate(BaseModel):
    from_director: str
    to_director: str
    context: str
    priority: Literal["low", "normal", "high"] = "normal"


class ProgressEntryCreate(BaseModel):
    message: str = Field(min_length=1)
    type: LogEntryType = "progress"
    feature: str | None = None
    director: str | None = None
    session: str | None = None
    tags: list[str] = Field(default_factory=list)
