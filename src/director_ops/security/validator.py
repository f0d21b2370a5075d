"""Input validation capability.

Two variants exist and one is chosen at startup:

- ``StrictValidator`` applies the director, queenbee type, path and handoff
  context rules (including prompt-injection detection and sanitisation).
- ``PermissiveValidator`` accepts everything. It is the explicit fallback for
  environments that do not want input screening.

Call sites receive the validator explicitly; nothing resolves it lazily.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Literal, Protocol

from director_ops.core.errors import SecurityRejected
from director_ops.hive.models import DIRECTORS

logger = logging.getLogger(__name__)

MAX_CONTEXT_LENGTH = 500

QUEENBEE_TYPES = ("strategic", "tactical", "adaptive")

_PATH_RE = re.compile(r"^[a-zA-Z0-9/\-_.~]+$")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_TAG_RE = re.compile(r"<[^>]*>?")

_INJECTION_PATTERNS: tuple[tuple[re.Pattern[str], float], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), confidence)
    for pattern, confidence in (
        # Jailbreaks
        (r"ignore\s+(previous|above|all)\s+instructions", 0.95),
        (r"disregard\s+(previous|all)\s+(rules|instructions)", 0.95),
        (r"you\s+are\s+now\s+(a|an)\s+\w+", 0.9),
        # Role manipulation
        (r"act\s+as\s+(if|a|an)", 0.8),
        (r"pretend\s+(you|to)\s+are", 0.8),
        (r"roleplay\s+as", 0.85),
        # System prompt leakage
        (r"show\s+(me\s+)?(your|the)\s+prompt", 0.9),
        (r"what\s+(are|is)\s+your\s+instructions", 0.9),
        (r"reveal\s+your\s+system\s+prompt", 0.95),
        # Boundary breaking
        (r"</system>", 0.9),
        (r"<\|endoftext\|>", 0.9),
        (r"---\s*end\s+of\s+prompt", 0.85),
    )
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    safe: bool
    reason: str
    sanitized: str | None = None


@dataclass(frozen=True, slots=True)
class InjectionFinding:
    detected: bool
    reason: str
    confidence: float = 0.0


class InputValidator(Protocol):
    """Screens untrusted input before the core accepts it."""

    def validate(self, value: str, kind: str) -> ValidationResult: ...


def detect_injection(text: str) -> InjectionFinding:
    for pattern, confidence in _INJECTION_PATTERNS:
        if pattern.search(text):
            return InjectionFinding(
                detected=True,
                reason="Potential prompt injection detected: matched pattern",
                confidence=confidence,
            )

    if "\\x" in text or "\\u" in text:
        return InjectionFinding(
            detected=True, reason="Suspicious escape sequences detected", confidence=0.7
        )

    return InjectionFinding(detected=False, reason="No injection detected")


def sanitize(value: str, kind: str) -> str:
    """Strip control characters, then apply kind-specific cleanup."""

    cleaned = _CONTROL_RE.sub("", value)
    if kind == "path":
        cleaned = cleaned.replace("..", "").replace("\\", "/")
    elif kind == "handoff_context":
        cleaned = _TAG_RE.sub("", cleaned)[:MAX_CONTEXT_LENGTH]
    return cleaned.strip()


class StrictValidator:
    def validate(self, value: str, kind: str) -> ValidationResult:
        if kind == "director":
            if value in DIRECTORS:
                return ValidationResult(safe=True, reason="OK")
            return ValidationResult(safe=False, reason=f"Invalid director: {value}")

        if kind == "queenbee_type":
            if value in QUEENBEE_TYPES:
                return ValidationResult(safe=True, reason="OK")
            return ValidationResult(safe=False, reason=f"Invalid queenbee type: {value}")

        if kind == "path":
            if not _PATH_RE.match(value) or ".." in value.split("/"):
                return ValidationResult(safe=False, reason="Path contains invalid characters")
            return ValidationResult(safe=True, reason="OK")

        if kind == "handoff_context":
            if len(value) > MAX_CONTEXT_LENGTH:
                return ValidationResult(
                    safe=False, reason=f"Context too long (max {MAX_CONTEXT_LENGTH} chars)"
                )
            finding = detect_injection(value)
            return ValidationResult(
                safe=not finding.detected,
                reason=f"Security risk: {finding.reason}" if finding.detected else "OK",
                sanitized=sanitize(value, kind),
            )

        return ValidationResult(safe=True, reason="No validation rule")


class PermissiveValidator:
    def validate(self, value: str, kind: str) -> ValidationResult:
        _ = (value, kind)
        return ValidationResult(safe=True, reason="Validation disabled")


def build_validator(mode: Literal["strict", "permissive"]) -> InputValidator:
    """Select the validator variant once, at startup."""

    if mode == "permissive":
        logger.warning("Input validation disabled; using permissive validator")
        return PermissiveValidator()
    return StrictValidator()


def require_safe(validator: InputValidator, value: str, kind: str) -> str:
    """Validate `value` and return the text to store.

    Raises:
        SecurityRejected: The validator reported the input as unsafe.
    """

    result = validator.validate(value, kind)
    if not result.safe:
        logger.warning("Input rejected", extra={"kind": kind, "reason": result.reason})
        raise SecurityRejected(kind_checked=kind, reason=result.reason)
    return result.sanitized if result.sanitized is not None else value
