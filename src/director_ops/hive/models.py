"""Persisted shapes of the hive coordination document."""

from __future__ import annotations

import math
import uuid
from collections.abc import Iterator
from typing import Literal

from pydantic import BaseModel, Field, RootModel, model_validator

from director_ops.state.manager import Document, utc_now_iso

DIRECTORS: tuple[str, ...] = (
    "architecture",
    "business",
    "design",
    "engineering",
    "research",
    "documentation",
    "operations",
    "security",
)

BROADCAST_LIMIT = 50

DirectorStatus = Literal["active", "idle", "blocked", "waiting"]
ConsensusStatus = Literal["open", "resolved"]
HandoffStatus = Literal["pending", "acknowledged"]


def _new_id() -> str:
    return str(uuid.uuid4())


def default_required_votes(director_count: int = len(DIRECTORS)) -> int:
    """Default quorum: ceil(n/2) + 1, which is 5 for the eight directors."""

    return math.ceil(director_count / 2) + 1


class DirectorRecord(BaseModel):
    status: DirectorStatus = "idle"
    last_activity: str | None = None
    current_task: str | None = None
    blockers: list[str] = Field(default_factory=list)
    contributions: int = Field(default=0, ge=0)


class Broadcast(BaseModel):
    id: str = Field(default_factory=_new_id)
    timestamp: str = Field(default_factory=utc_now_iso)
    sender: str = "system"
    priority: str = "normal"
    message: str
    targets: list[str] = Field(default_factory=lambda: list(DIRECTORS))
    acknowledged: list[str] = Field(default_factory=list)


class BroadcastLog(RootModel[list[Broadcast]]):
    """Bounded broadcast log.

    Invariant: never holds more than BROADCAST_LIMIT entries; appending past
    the limit evicts the oldest entries first.
    """

    root: list[Broadcast] = Field(default_factory=list)

    @model_validator(mode="after")
    def _enforce_limit(self) -> BroadcastLog:
        if len(self.root) > BROADCAST_LIMIT:
            del self.root[: len(self.root) - BROADCAST_LIMIT]
        return self

    def append(self, entry: Broadcast) -> list[Broadcast]:
        """Append `entry` and return whatever was evicted."""
        self.root.append(entry)
        overflow = len(self.root) - BROADCAST_LIMIT
        if overflow <= 0:
            return []
        evicted = self.root[:overflow]
        del self.root[:overflow]
        return evicted

    def clear(self) -> None:
        self.root.clear()

    def __iter__(self) -> Iterator[Broadcast]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> Broadcast:
        return self.root[index]


class Vote(BaseModel):
    choice: str
    timestamp: str = Field(default_factory=utc_now_iso)
    notes: str = ""


class ConsensusRequest(BaseModel):
    """A proposal resolved by quorum.

    Once `status` is `resolved`, `votes` and `outcome` never change.
    """

    id: str = Field(default_factory=_new_id)
    timestamp: str = Field(default_factory=utc_now_iso)
    topic: str
    description: str = ""
    options: list[str] = Field(default_factory=lambda: ["approve", "reject"], min_length=1)
    required_votes: int = Field(default_factory=default_required_votes, ge=1)
    deadline: str | None = None
    votes: dict[str, Vote] = Field(default_factory=dict)
    status: ConsensusStatus = "open"
    outcome: str | None = None
    resolved_at: str | None = None


class Handoff(BaseModel):
    id: str = Field(default_factory=_new_id)
    timestamp: str = Field(default_factory=utc_now_iso)
    from_director: str
    to_director: str
    context: str
    priority: str = "normal"
    status: HandoffStatus = "pending"
    acknowledged_at: str | None = None


class ActiveCoordination(BaseModel):
    type: str
    started_at: str = Field(default_factory=utc_now_iso)
    participants: list[str] = Field(default_factory=list)


class HiveState(Document):
    """The hive document: directors, handoffs, broadcasts and consensus requests."""

    version: str = "1.0.0"
    active_coordination: ActiveCoordination | None = None
    directors: dict[str, DirectorRecord] = Field(default_factory=dict)
    pending_handoffs: list[Handoff] = Field(default_factory=list)
    broadcasts: BroadcastLog = Field(default_factory=BroadcastLog)
    consensus_requests: list[ConsensusRequest] = Field(default_factory=list)

    @model_validator(mode="after")
    def _ensure_directors(self) -> HiveState:
        # Older documents may predate a director; every role must always be present.
        for name in DIRECTORS:
            self.directors.setdefault(name, DirectorRecord())
        return self
