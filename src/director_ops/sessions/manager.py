"""Session persistence, checkpoints and resume.

Sessions are independent of the gate pipeline and the hive; callers may run
them alongside either. One document per session id.
"""

from __future__ import annotations

import logging
import platform
import uuid
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from director_ops.core.errors import NotFound, StateConflict
from director_ops.state.manager import Document, DocumentStore, utc_now_iso

logger = logging.getLogger(__name__)

SessionStatus = Literal["active", "paused", "completed"]


class Checkpoint(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=utc_now_iso)
    name: str
    state: dict[str, Any] = Field(default_factory=dict)
    notes: str = ""
    files: list[str] = Field(default_factory=list)
    recoverable: bool = True


class SessionEvent(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    action: str
    details: Any = None


class Session(Document):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: str = "general"
    director: str | None = None
    feature: str | None = None
    status: SessionStatus = "active"
    checkpoints: list[Checkpoint] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    progress: list[SessionEvent] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    summary: dict[str, Any] | None = None
    completed_at: str | None = None


class SessionStats(BaseModel):
    total: int
    active: int
    paused: int
    completed: int
    checkpoints: int


class SessionManager:
    """Create, resume, checkpoint and complete sessions.

    The manager tracks one current session for the lifetime of the instance.
    """

    def __init__(self, directory: Path) -> None:
        self.store: DocumentStore[Session] = DocumentStore(directory, Session)
        self.current: Session | None = None

    def _require_current(self) -> Session:
        if self.current is None:
            raise StateConflict(message="No active session")
        return self.current

    def _save(self, session: Session) -> None:
        self.store.save(session.id, session)

    def get(self, session_id: str) -> Session:
        if not self.store.exists(session_id):
            raise NotFound(entity="Session", reference=session_id)
        return self.store.load(session_id)

    def create(
        self,
        *,
        type: str = "general",  # noqa: A002
        director: str | None = None,
        feature: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> Session:
        session = Session(
            type=type,
            director=director,
            feature=feature,
            context=context or {},
            metadata={
                "cwd": str(Path.cwd()),
                "python_version": platform.python_version(),
                "platform": platform.system().lower(),
            },
        )
        self._save(session)
        self.current = session
        logger.info("Session created", extra={"session_id": session.id, "type": type})
        return session

    def attach(self, session_id: str) -> Session:
        """Make a stored session current without recording a resume."""
        self.current = self.get(session_id)
        return self.current

    def resume(self, session_id: str) -> Session:
        session = self.get(session_id)
        session.status = "active"
        session.progress.append(SessionEvent(action="resumed", details="Session resumed"))
        self._save(session)
        self.current = session
        logger.info("Session resumed", extra={"session_id": session.id})
        return session

    def checkpoint(
        self,
        name: str | None = None,
        *,
        notes: str = "",
        state: dict[str, Any] | None = None,
        files: list[str] | None = None,
    ) -> Checkpoint:
        session = self._require_current()
        checkpoint = Checkpoint(
            name=name or f"checkpoint-{len(session.checkpoints) + 1}",
            notes=notes,
            state=state or {},
            files=files or [],
        )
        session.checkpoints.append(checkpoint)
        self._save(session)
        logger.info(
            "Checkpoint created",
            extra={"session_id": session.id, "checkpoint_id": checkpoint.id},
        )
        return checkpoint

    def restore(self, checkpoint_id: str) -> Checkpoint:
        session = self._require_current()
        for checkpoint in session.checkpoints:
            if checkpoint.id == checkpoint_id:
                session.progress.append(
                    SessionEvent(
                        action="restored",
                        details=f"Restored from checkpoint: {checkpoint.name}",
                    )
                )
                self._save(session)
                return checkpoint
        raise NotFound(entity="Checkpoint", reference=checkpoint_id)

    def log_progress(self, action: str, details: Any = None) -> None:
        session = self._require_current()
        session.progress.append(SessionEvent(action=action, details=details))
        self._save(session)

    def complete(self, summary: dict[str, Any] | None = None) -> Session:
        session = self._require_current()
        session.status = "completed"
        session.completed_at = utc_now_iso()
        session.summary = summary or {}
        self._save(session)
        self.current = None
        logger.info("Session completed", extra={"session_id": session.id})
        return session

    def pause(self) -> Session:
        session = self._require_current()
        session.status = "paused"
        session.progress.append(SessionEvent(action="paused", details="Session paused"))
        self._save(session)
        self.current = None
        return session

    def list(
        self,
        *,
        status: str | None = None,
        director: str | None = None,
        type: str | None = None,  # noqa: A002
    ) -> list[Session]:
        sessions = [self.store.load(key) for key in self.store.keys()]
        selected = [
            s
            for s in sessions
            if (status is None or s.status == status)
            and (director is None or s.director == director)
            and (type is None or s.type == type)
        ]
        return sorted(selected, key=lambda s: s.updated_at, reverse=True)

    def stats(self) -> SessionStats:
        sessions = self.list()
        return SessionStats(
            total=len(sessions),
            active=sum(1 for s in sessions if s.status == "active"),
            paused=sum(1 for s in sessions if s.status == "paused"),
            completed=sum(1 for s in sessions if s.status == "completed"),
            checkpoints=sum(len(s.checkpoints) for s in sessions),
        )
