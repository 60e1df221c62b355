"""Custom exception hierarchy for fieldcheck.

All public errors inherit from FieldcheckError so callers can catch the base
class for any fieldcheck-specific failure.

``ValidationError`` is special: it is the aggregate result of a validation
run.  :func:`fieldcheck.validate` *returns* it, :func:`fieldcheck.parse`
*raises* it.
"""
from __future__ import annotations

from typing import Any


class FieldcheckError(Exception):
    """Base exception for all fieldcheck errors."""


class ValidationError(FieldcheckError):
    """Field-path keyed collection of human-readable failure messages.

    Args:
        errors: Mapping of dotted field path to an ordered list of messages.
    """

    def __init__(self, errors: dict[str, list[str]] | None = None) -> None:
        super().__init__("validation failed")
        self.errors: dict[str, list[str]] = errors if errors is not None else {}

    def has_errors(self) -> bool:
        """Returns ``True`` if at least one field has a message."""
        return len(self.errors) > 0

    def add(self, field: str, message: str) -> None:
        """Append ``message`` to the messages of ``field``."""
        self.errors.setdefault(field, []).append(message)

    def get(self, field: str) -> list[str]:
        """Returns the messages for ``field``, or ``[]``."""
        return self.errors.get(field, [])

    def first(self, field: str) -> str:
        """Returns the first message for ``field``, or ``""``."""
        messages = self.get(field)
        return messages[0] if messages else ""

    def all(self) -> list[str]:
        """Returns every message as one flat list."""
        return [msg for messages in self.errors.values() for msg in messages]

    def fields(self) -> list[str]:
        """Returns all field paths that have errors."""
        return list(self.errors)

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response suitable for an API body."""
        return {
            "error": "VALIDATION_FAILED",
            "message": str(self),
            "details": {field: list(msgs) for field, msgs in self.errors.items()},
        }


class PatternCompileError(FieldcheckError):
    """Raised when a trusted, static pattern fails to compile.

    This is a programming error detected at rule-construction time, never a
    per-value validation failure.

    Args:
        pattern: The offending regular expression source.
        reason: The compiler's description of the problem.
    """

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid trusted pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class CheckerError(FieldcheckError):
    """Base class for failures of an external existence lookup."""


class NoConnectionError(CheckerError):
    """Raised by adapters constructed without a database connection."""

    def __init__(self) -> None:
        super().__init__("database connection is nil")


class CancelledError(CheckerError):
    """Raised (or recorded) when the validation context was cancelled."""

    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceededError(CheckerError):
    """Raised (or recorded) when the validation context's deadline passed."""

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")
