"""Validation context value objects.

``ValidationContext`` packages the ``(cancel token, root data, path, options)``
data clump that every validator needs into a single immutable object.  Child
contexts are derived with :meth:`ValidationContext.child`; a context is never
mutated, so sibling branches of a nested schema can never alias each other's
path.
"""
from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fieldcheck.errors import CancelledError, CheckerError, DeadlineExceededError
from fieldcheck.schema.paths import build_path

if TYPE_CHECKING:
    from fieldcheck.db.checker import DBChecker


class CancelToken:
    """Cooperative, thread-safe cancellation signal with an optional deadline.

    The executor only *checks* the token before dispatching a lookup; aborting
    an in-flight lookup is up to the checker, which receives the token.

    Args:
        timeout: Seconds from now after which the token reports
            :class:`~fieldcheck.errors.DeadlineExceededError`.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Mark the token as cancelled. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """``True`` once cancelled or past the deadline."""
        return self.error() is not None

    def error(self) -> CheckerError | None:
        """Return the cancellation reason, or ``None`` if still live."""
        if self._event.is_set():
            return CancelledError()
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceededError()
        return None

    def remaining(self) -> float | None:
        """Seconds until the deadline, or ``None`` when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())


#: A token that is never cancelled; used when the caller passes none.
BACKGROUND = CancelToken()


class ValidationOptions(BaseModel):
    """Validation-wide options.

    Attributes:
        abort_early: Stop at the first top-level field that produced an error.
            External checks are not run in that case.
        db_checker: Capability used for Exists/Unique lookups.  ``None`` skips
            external checks entirely.
        cancel: Cancellation token threaded to every external lookup.
        run_db_checks_with_errors: Run external checks even when structural
            errors were found.  Off by default so the store is never queried
            for data already known to be invalid.
        group_by_where_values: Include where-clause *values* in the batch key.
            Off by default: checks that share table, column and where shape
            are batched together and only the first where-values are sent.
        max_workers: Upper bound on concurrent lookups.  ``None`` runs one
            worker per batch group.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    abort_early: bool = False
    db_checker: Any = None
    cancel: CancelToken | None = None
    run_db_checks_with_errors: bool = False
    group_by_where_values: bool = False
    max_workers: int | None = Field(default=None, ge=1)

    @field_validator("db_checker")
    @classmethod
    def _require_check_exists(cls, value: Any) -> Any:
        if value is not None and not callable(getattr(value, "check_exists", None)):
            raise ValueError("db_checker must implement check_exists(ctx, table, column, values, where)")
        return value

    @property
    def checker(self) -> DBChecker | None:
        return self.db_checker

    @property
    def token(self) -> CancelToken:
        return self.cancel if self.cancel is not None else BACKGROUND


@dataclass(frozen=True)
class ValidationContext:
    """Immutable context for one field during a single validation run.

    Attributes:
        root: The root data object (for cross-field lookups).
        path: Ordered path segments from the root to the current field.
        options: Validation-wide options.
    """

    root: Mapping[str, Any]
    path: tuple[str, ...] = ()
    options: ValidationOptions = field(default_factory=ValidationOptions)

    @property
    def token(self) -> CancelToken:
        return self.options.token

    @property
    def full_path(self) -> str:
        """Dot-notation path of the current field."""
        return build_path(*self.path)

    @property
    def field_name(self) -> str:
        """Last path segment, or ``""`` at the root."""
        return self.path[-1] if self.path else ""

    def child(self, segment: str | int) -> ValidationContext:
        """Return a new context one level deeper."""
        return ValidationContext(
            root=self.root,
            path=(*self.path, str(segment)),
            options=self.options,
        )
