"""The external lookup capability consumed by the batch executor.

Anything with a matching ``check_exists`` method is a :class:`DBChecker`;
plain functions can be adapted with :class:`FuncChecker`::

    def lookup(ctx, table, column, values, where):
        return {v: True for v in known[table] if v in values}

    fieldcheck.validate(data, schema, db_checker=FuncChecker(lookup))
"""
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from fieldcheck.schema.context import CancelToken
from fieldcheck.schema.rules import WhereClause

#: Signature of :meth:`DBChecker.check_exists`.
CheckFunc = Callable[
    [CancelToken, str, str, Sequence[Any], Sequence[WhereClause]],
    Mapping[Any, bool],
]


@runtime_checkable
class DBChecker(Protocol):
    """Answers "which of these values exist in ``table.column``?"."""

    def check_exists(
        self,
        ctx: CancelToken,
        table: str,
        column: str,
        values: Sequence[Any],
        where: Sequence[WhereClause],
    ) -> Mapping[Any, bool]:
        """Return a membership map for ``values``.

        Implementations must return ``{}`` for empty ``values`` without
        touching their transport, and raise on failure.
        """
        ...


class FuncChecker:
    """Adapts a plain function to the :class:`DBChecker` protocol.

    Args:
        fn: Called with ``(ctx, table, column, values, where)``.
    """

    def __init__(self, fn: CheckFunc) -> None:
        self._fn = fn

    def check_exists(
        self,
        ctx: CancelToken,
        table: str,
        column: str,
        values: Sequence[Any],
        where: Sequence[WhereClause],
    ) -> Mapping[Any, bool]:
        if not values:
            return {}
        return self._fn(ctx, table, column, values, where)
