"""Typed failures raised by the core operations.

Every failure is recoverable at the call boundary. Adapters decide what the
user sees: the CLI maps ``exit_code``, the REST server maps ``http_status``.

Errors are not frozen: `contextlib` rewrites `__traceback__` on exceptions
leaving a generator-based `with` block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar


class DirectorOpsError(Exception):
    """Base class for all director-ops failures."""

    exit_code: ClassVar[int] = 1
    http_status: ClassVar[int] = 400

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(eq=False, slots=True)
class NotFound(DirectorOpsError):
    """A feature, gate, consensus request, handoff or session reference did not resolve."""

    exit_code: ClassVar[int] = 3
    http_status: ClassVar[int] = 404

    entity: str
    reference: str

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.reference!r}"


@dataclass(eq=False, slots=True)
class AmbiguousReference(DirectorOpsError):
    exit_code: ClassVar[int] = 3
    http_status: ClassVar[int] = 409

    entity: str
    reference: str
    matches: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        shown = ", ".join(m[:8] for m in self.matches)
        return f"{self.entity} reference {self.reference!r} is ambiguous ({shown})"


@dataclass(eq=False, slots=True)
class OrderViolation(DirectorOpsError):
    """A gate was validated before all of its predecessors passed."""

    exit_code: ClassVar[int] = 4
    http_status: ClassVar[int] = 409

    gate: str
    unmet: list[tuple[int, str]] = field(default_factory=list)

    @property
    def unmet_ids(self) -> list[int]:
        return [gate_id for gate_id, _ in self.unmet]

    def __str__(self) -> str:
        pending = ", ".join(f"{gate_id}:{name}" for gate_id, name in self.unmet)
        return f"Gate {self.gate!r} requires earlier gates to pass first ({pending})"


@dataclass(eq=False, slots=True)
class ValidationIncomplete(DirectorOpsError):
    exit_code: ClassVar[int] = 4
    http_status: ClassVar[int] = 409

    passed: int
    total: int

    def __str__(self) -> str:
        return (
            f"Not all validation gates passed ({self.passed}/{self.total}); "
            "use force to complete anyway (constitutional violation)"
        )


@dataclass(eq=False, slots=True)
class StateConflict(DirectorOpsError):
    exit_code: ClassVar[int] = 5
    http_status: ClassVar[int] = 409

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False, slots=True)
class InvalidChoice(DirectorOpsError):
    exit_code: ClassVar[int] = 6
    http_status: ClassVar[int] = 422

    choice: str
    options: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Invalid choice {self.choice!r}. Options: {', '.join(self.options)}"


@dataclass(eq=False, slots=True)
class InvalidValue(DirectorOpsError):
    """A numeric or free-form argument is outside its allowed range."""

    exit_code: ClassVar[int] = 6
    http_status: ClassVar[int] = 422

    parameter: str
    value: str
    reason: str

    def __str__(self) -> str:
        return f"Invalid {self.parameter} {self.value!r}: {self.reason}"


@dataclass(eq=False, slots=True)
class UnknownDirector(DirectorOpsError):
    exit_code: ClassVar[int] = 6
    http_status: ClassVar[int] = 422

    name: str

    def __str__(self) -> str:
        return f"Unknown director: {self.name}"


@dataclass(eq=False, slots=True)
class SecurityRejected(DirectorOpsError):
    """The input validator reported unsafe input. ``reason`` is surfaced verbatim."""

    exit_code: ClassVar[int] = 7
    http_status: ClassVar[int] = 422

    kind_checked: str
    reason: str

    def __str__(self) -> str:
        return self.reason


@dataclass(eq=False, slots=True)
class IOFailure(DirectorOpsError):
    exit_code: ClassVar[int] = 8
    http_status: ClassVar[int] = 500

    path: str
    message: str

    def __str__(self) -> str:
        return f"Storage failure at {self.path}: {self.message}"
