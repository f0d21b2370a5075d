"""Daily progress log.

One document per UTC day, keyed `YYYY-MM-DD`. Entries are appended in the
order they are logged; reads return them newest day first.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from director_ops.core.errors import InvalidChoice, InvalidValue, NotFound
from director_ops.state.manager import Document, DocumentStore, utc_now_iso

logger = logging.getLogger(__name__)

LogEntryType = Literal[
    "progress", "milestone", "decision", "blocker", "resolved", "learning", "handoff"
]
LOG_ENTRY_TYPES: tuple[str, ...] = (
    "progress",
    "milestone",
    "decision",
    "blocker",
    "resolved",
    "learning",
    "handoff",
)


class LogEntry(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    type: LogEntryType = "progress"
    message: str
    feature: str | None = None
    director: str | None = None
    session: str | None = None
    tags: list[str] = Field(default_factory=list)

    def matches(self, query: str) -> bool:
        needle = query.lower()
        haystack = [self.message, self.type, self.feature, self.director, self.session, *self.tags]
        return any(needle in value.lower() for value in haystack if value)


class ProgressDay(Document):
    day: str
    entries: list[LogEntry] = Field(default_factory=list)


class ProgressSummary(BaseModel):
    days: int
    dates: list[str]
    total: int
    by_type: dict[str, int]
    by_director: dict[str, int]
    top_features: list[tuple[str, int]]


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidValue(parameter="date", value=value, reason="expected YYYY-MM-DD") from e


def _today() -> date:
    return datetime.now(tz=UTC).date()


class ProgressLog:
    """Append-only daily log of progress entries."""

    def __init__(self, directory: Path) -> None:
        self.store: DocumentStore[ProgressDay] = DocumentStore(
            directory, ProgressDay, default_factory=lambda key: ProgressDay(day=key)
        )

    def dates(self) -> list[str]:
        """Logged days, newest first."""
        days = [key for key in self.store.keys() if _is_day(key)]
        return sorted(days, reverse=True)

    def log(
        self,
        message: str,
        *,
        type: str = "progress",  # noqa: A002
        feature: str | None = None,
        director: str | None = None,
        session: str | None = None,
        tags: list[str] | None = None,
        today: date | None = None,
    ) -> LogEntry:
        """Append an entry to today's log and save it.

        Raises:
            InvalidChoice: `type` is not one of `LOG_ENTRY_TYPES`.
            InvalidValue: `message` is blank.
        """
        if type not in LOG_ENTRY_TYPES:
            raise InvalidChoice(choice=type, options=list(LOG_ENTRY_TYPES))
        if not message.strip():
            raise InvalidValue(parameter="message", value=message, reason="must not be empty")

        key = (today or _today()).isoformat()
        day = self.store.load(key)
        entry = LogEntry(
            type=type,
            message=message.strip(),
            feature=feature,
            director=director,
            session=session,
            tags=list(tags or []),
        )
        day.entries.append(entry)
        self.store.save(key, day)

        logger.info(
            "Progress logged",
            extra={"date": key, "type": type, "feature": feature, "director": director},
        )
        return entry

    def view(self, day: str | None = None) -> ProgressDay:
        key = _parse_day(day).isoformat() if day else _today().isoformat()
        if not self.store.exists(key):
            raise NotFound(entity="Progress log", reference=key)
        return self.store.load(key)

    def search(self, query: str, limit: int = 20) -> list[LogEntry]:
        """Case-insensitive match over entry text, newest first."""
        if limit < 1:
            raise InvalidValue(parameter="limit", value=str(limit), reason="must be at least 1")

        found: list[LogEntry] = []
        for key in self.dates():
            for entry in reversed(self.store.load(key).entries):
                if entry.matches(query):
                    found.append(entry)
                    if len(found) >= limit:
                        return found
        return found

    def summary(self, days: int = 7, today: date | None = None) -> ProgressSummary:
        """Count entries of the last `days` days by type, director and feature."""
        if days < 1:
            raise InvalidValue(parameter="days", value=str(days), reason="must be at least 1")

        cutoff = ((today or _today()) - timedelta(days=days)).isoformat()
        recent = [key for key in self.dates() if key >= cutoff]

        by_type: Counter[str] = Counter()
        by_director: Counter[str] = Counter()
        by_feature: Counter[str] = Counter()
        for key in recent:
            for entry in self.store.load(key).entries:
                by_type[entry.type] += 1
                if entry.director:
                    by_director[entry.director] += 1
                if entry.feature:
                    by_feature[entry.feature] += 1

        return ProgressSummary(
            days=days,
            dates=recent,
            total=sum(by_type.values()),
            by_type=dict(by_type.most_common()),
            by_director=dict(by_director.most_common()),
            top_features=by_feature.most_common(5),
        )


def _is_day(key: str) -> bool:
    try:
        date.fromisoformat(key)
    except ValueError:
        return False
    return True
