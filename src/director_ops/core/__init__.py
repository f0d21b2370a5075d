"""Core package initialization."""

from director_ops.core.config import DirectorOpsSettings
from director_ops.core.errors import (
    AmbiguousReference,
    DirectorOpsError,
    InvalidChoice,
    InvalidValue,
    IOFailure,
    NotFound,
    OrderViolation,
    SecurityRejected,
    StateConflict,
    UnknownDirector,
    ValidationIncomplete,
)

__all__ = [
    "AmbiguousReference",
    "DirectorOpsError",
    "DirectorOpsSettings",
    "IOFailure",
    "InvalidChoice",
    "InvalidValue",
    "NotFound",
    "OrderViolation",
    "SecurityRejected",
    "StateConflict",
    "UnknownDirector",
    "ValidationIncomplete",
]
