"""Hive coordination operations.

A `HiveCoordinator` wraps one loaded `HiveState`. Operations mutate that
in-memory document; the caller saves it afterwards as a whole.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from director_ops.core.errors import (
    InvalidChoice,
    InvalidValue,
    SecurityRejected,
    StateConflict,
    UnknownDirector,
)
from director_ops.core.refs import resolve_reference
from director_ops.hive import consensus
from director_ops.hive.models import (
    DIRECTORS,
    ActiveCoordination,
    Broadcast,
    ConsensusRequest,
    DirectorRecord,
    DirectorStatus,
    Handoff,
    HiveState,
    Vote,
    default_required_votes,
)
from director_ops.security.validator import InputValidator, require_safe
from director_ops.state.manager import utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DirectorSync:
    """Fields applied by `sync_director`.

    - status: new status (default "active")
    - task: replaces the current task when given
    - blocker: appended to the blocker list when given
    - clear_blockers: empties the blocker list (applied after `blocker`)
    """

    status: DirectorStatus = "active"
    task: str | None = None
    blocker: str | None = None
    clear_blockers: bool = False


@dataclass(frozen=True, slots=True)
class ConsensusOptions:
    """Fields applied by `request_consensus`.

    - description: free text shown with the topic
    - options: valid choices in declaration order (default approve, reject)
    - required_votes: quorum for one choice (default ceil(8/2)+1 = 5)
    - deadline: advisory only; requests never expire on their own
    """

    description: str = ""
    options: tuple[str, ...] = ("approve", "reject")
    required_votes: int | None = None
    deadline: str | None = None


class VoteOutcome(BaseModel):
    request: ConsensusRequest
    tally: dict[str, int]
    resolved: bool


class DirectorStatusRow(BaseModel):
    director: str
    status: DirectorStatus
    current_task: str | None = None
    blockers: list[str] = Field(default_factory=list)


class HiveStatus(BaseModel):
    updated_at: str
    directors: list[DirectorStatusRow]
    active_coordination: ActiveCoordination | None = None
    pending_handoffs: list[Handoff] = Field(default_factory=list)
    active: int
    idle: int
    blocked: int
    waiting: int


class DirectorActivity(BaseModel):
    director: str
    last_activity: str | None = None
    seconds_since_activity: int | None = None
    since: str = "never"
    contributions: int = 0


class HiveMetrics(BaseModel):
    activity: list[DirectorActivity]
    total_contributions: int
    open_consensus: int
    resolved_consensus: int
    total_broadcasts: int
    pending_handoffs: int


def time_since(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def _parse_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


class HiveCoordinator:
    """Director registry, broadcast log, handoffs and consensus over one `HiveState`."""

    def __init__(
        self,
        state: HiveState,
        validator: InputValidator,
        *,
        restrict_voters: bool = False,
    ) -> None:
        self.state = state
        self.validator = validator
        self.restrict_voters = restrict_voters

    def _director(self, name: str) -> DirectorRecord:
        if name not in DIRECTORS:
            logger.warning("Unknown director", extra={"director": name})
            raise UnknownDirector(name=name)
        return self.state.directors[name]

    def _credit(self, name: str) -> None:
        if name in DIRECTORS:
            self.state.directors[name].contributions += 1

    # Directors

    def initialize(self, clear_all: bool = False) -> HiveState:
        """Reset every director to idle; with `clear_all` also drop logs and requests."""
        now = utc_now_iso()
        for name in DIRECTORS:
            self.state.directors[name] = DirectorRecord(status="idle", last_activity=now)

        self.state.active_coordination = None
        if clear_all:
            self.state.pending_handoffs = []
            self.state.broadcasts.clear()
            self.state.consensus_requests = []

        logger.info("Hive initialized", extra={"clear_all": clear_all})
        return self.state

    def sync_director(self, director: str, sync: DirectorSync | None = None) -> DirectorRecord:
        sync = sync or DirectorSync()
        record = self._director(director)

        record.status = sync.status
        record.last_activity = utc_now_iso()
        if sync.task:
            record.current_task = sync.task
        if sync.blocker:
            record.blockers.append(sync.blocker)
        if sync.clear_blockers:
            record.blockers = []

        logger.info(
            "Director synced",
            extra={"director": director, "status": record.status, "task": record.current_task},
        )
        return record

    def sync_all(self) -> HiveState:
        now = utc_now_iso()
        for name in DIRECTORS:
            self.state.directors[name].last_activity = now
        logger.info("All directors synced")
        return self.state

    # Broadcasts

    def broadcast(
        self,
        message: str,
        *,
        sender: str = "system",
        priority: str = "normal",
        targets: list[str] | None = None,
    ) -> Broadcast:
        entry = Broadcast(
            sender=sender,
            priority=priority,
            message=message,
            targets=list(targets) if targets else list(DIRECTORS),
        )
        evicted = self.state.broadcasts.append(entry)
        self._credit(sender)

        logger.info(
            "Broadcast sent",
            extra={"broadcast_id": entry.id, "sender": sender, "evicted": len(evicted)},
        )
        return entry

    def acknowledge_broadcast(self, broadcast_ref: str, director: str) -> Broadcast:
        self._director(director)
        entry = resolve_reference(
            list(self.state.broadcasts), broadcast_ref, key=lambda b: b.id, entity="Broadcast"
        )
        if director not in entry.acknowledged:
            entry.acknowledged.append(director)
        return entry

    # Consensus

    def request_consensus(
        self, topic: str, options: ConsensusOptions | None = None
    ) -> ConsensusRequest:
        options = options or ConsensusOptions()
        choices = [c.strip() for c in options.options if c.strip()]
        if not choices:
            raise InvalidChoice(choice="", options=[])
        duplicates = sorted({c for c in choices if choices.count(c) > 1})
        if duplicates:
            raise InvalidChoice(choice=duplicates[0], options=choices)

        required = (
            options.required_votes
            if options.required_votes is not None
            else default_required_votes(len(DIRECTORS))
        )
        if required < 1:
            raise InvalidValue(
                parameter="required_votes", value=str(required), reason="must be at least 1"
            )
        request = ConsensusRequest(
            topic=topic,
            description=options.description,
            options=choices,
            required_votes=required,
            deadline=options.deadline,
        )
        self.state.consensus_requests.append(request)

        logger.info(
            "Consensus requested",
            extra={"request_id": request.id, "topic": topic, "required_votes": required},
        )
        return request

    def find_request(self, request_ref: str) -> ConsensusRequest:
        return resolve_reference(
            self.state.consensus_requests,
            request_ref,
            key=lambda r: r.id,
            entity="Consensus request",
        )

    def cast_vote(
        self, request_ref: str, voter: str, choice: str, notes: str = ""
    ) -> VoteOutcome:
        """Record `voter`'s choice and run the resolver.

        A repeat vote by the same voter replaces the earlier one.

        Raises:
            NotFound: No request matches `request_ref`.
            StateConflict: The request is already resolved.
            InvalidChoice: `choice` is not one of the request's options.
            UnknownDirector: `voter` is not a director and voters are restricted.
        """
        request = self.find_request(request_ref)
        if request.status == "resolved":
            logger.warning("Vote on resolved request", extra={"request_id": request.id})
            raise StateConflict(
                message=f"Consensus request {request.id[:8]} is already resolved "
                f"(outcome: {request.outcome})"
            )
        if choice not in request.options:
            raise InvalidChoice(choice=choice, options=list(request.options))
        if self.restrict_voters:
            self._director(voter)

        first_vote = voter not in request.votes
        request.votes[voter] = Vote(choice=choice, notes=notes)
        if first_vote:
            self._credit(voter)

        consensus.resolve(request)
        counts = consensus.tally(request)
        logger.info(
            "Vote recorded",
            extra={"request_id": request.id, "voter": voter, "choice": choice},
        )
        return VoteOutcome(
            request=request, tally=counts, resolved=request.status == "resolved"
        )

    # Handoffs

    def create_handoff(
        self, from_director: str, to_director: str, context: str, priority: str = "normal"
    ) -> Handoff:
        require_safe(self.validator, from_director, "director")
        require_safe(self.validator, to_director, "director")
        cleaned = require_safe(self.validator, context, "handoff_context")

        self._director(from_director)
        self._director(to_director)
        if from_director == to_director:
            raise SecurityRejected(kind_checked="handoff", reason="Cannot handoff to self")

        handoff = Handoff(
            from_director=from_director,
            to_director=to_director,
            context=cleaned,
            priority=priority,
        )
        self.state.pending_handoffs.append(handoff)
        self._credit(from_director)

        logger.info(
            "Handoff created",
            extra={"handoff_id": handoff.id, "from": from_director, "to": to_director},
        )
        return handoff

    def acknowledge_handoff(self, handoff_ref: str) -> Handoff:
        handoff = resolve_reference(
            self.state.pending_handoffs, handoff_ref, key=lambda h: h.id, entity="Handoff"
        )
        if handoff.status == "acknowledged":
            raise StateConflict(message=f"Handoff {handoff.id[:8]} is already acknowledged")
        handoff.status = "acknowledged"
        handoff.acknowledged_at = utc_now_iso()
        return handoff

    # Coordination

    def start_coordination(self, kind: str, participants: list[str]) -> ActiveCoordination:
        for name in participants:
            self._director(name)
        self.state.active_coordination = ActiveCoordination(
            type=kind, participants=list(participants)
        )
        logger.info("Coordination started", extra={"type": kind, "participants": participants})
        return self.state.active_coordination

    def end_coordination(self) -> None:
        self.state.active_coordination = None

    # Read-only projections

    def status(self) -> HiveStatus:
        rows = [
            DirectorStatusRow(
                director=name,
                status=record.status,
                current_task=record.current_task,
                blockers=list(record.blockers),
            )
            for name, record in self.state.directors.items()
        ]
        counts = {
            status: sum(1 for r in rows if r.status == status)
            for status in ("active", "idle", "blocked", "waiting")
        }
        return HiveStatus(
            updated_at=self.state.updated_at,
            directors=rows,
            active_coordination=self.state.active_coordination,
            pending_handoffs=[h for h in self.state.pending_handoffs if h.status == "pending"],
            active=counts["active"],
            idle=counts["idle"],
            blocked=counts["blocked"],
            waiting=counts["waiting"],
        )

    def metrics(self, now: datetime | None = None) -> HiveMetrics:
        now = now or datetime.now(tz=UTC)

        activity: list[DirectorActivity] = []
        for name, record in self.state.directors.items():
            seconds: int | None = None
            if record.last_activity:
                seconds = max(0, int((now - _parse_iso(record.last_activity)).total_seconds()))
            activity.append(
                DirectorActivity(
                    director=name,
                    last_activity=record.last_activity,
                    seconds_since_activity=seconds,
                    since=time_since(seconds) if seconds is not None else "never",
                    contributions=record.contributions,
                )
            )
        # Most recent first; never-active directors last.
        activity.sort(
            key=lambda a: a.seconds_since_activity
            if a.seconds_since_activity is not None
            else float("inf")
        )

        requests = self.state.consensus_requests
        return HiveMetrics(
            activity=activity,
            total_contributions=sum(a.contributions for a in activity),
            open_consensus=sum(1 for r in requests if r.status == "open"),
            resolved_consensus=sum(1 for r in requests if r.status == "resolved"),
            total_broadcasts=len(self.state.broadcasts),
            pending_handoffs=sum(1 for h in self.state.pending_handoffs if h.status == "pending"),
        )
