"""Checkers for concrete stores.

SQLAlchemy adapter
------------------
:class:`SQLAlchemyChecker` works with an :class:`~sqlalchemy.engine.Engine`
or an open :class:`~sqlalchemy.engine.Connection`::

    from sqlalchemy import create_engine
    from fieldcheck.db.adapters import SQLAlchemyChecker

    checker = SQLAlchemyChecker(create_engine("sqlite:///app.db"))
    fieldcheck.validate(payload, schema, db_checker=checker)

DB-API adapter
--------------
:class:`DBAPIChecker` accepts any PEP 249 connection (``sqlite3``,
``psycopg``, ...) and issues the query built by :func:`build_exists_query`.

Both adapters issue a single ``SELECT col FROM table WHERE col IN (...)``
per call and answer ``{}`` for an empty value list without touching the
connection.  They raise :class:`~fieldcheck.errors.NoConnectionError` when
constructed without a connection.

The answer is keyed by the candidates as they were sent, not by the row
values the driver returns.  A store that matches across types (a ``TEXT``
column holding ``'1'`` queried with ``1``) therefore reports ``{1: True}``;
see :func:`present_candidates`.
"""
from __future__ import annotations

import math
import re
from collections.abc import Hashable, Iterable, Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from fieldcheck.db.reconciler import scalar_key
from fieldcheck.errors import NoConnectionError
from fieldcheck.schema.context import CancelToken
from fieldcheck.schema.rules import WhereClause

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")

#: Operators accepted in where-clauses.
SUPPORTED_OPERATORS: frozenset[str] = frozenset(
    {"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE"}
)

_PLACEHOLDERS = {
    "qmark": lambda i: "?",
    "format": lambda i: "%s",
    "numeric": lambda i: f":{i + 1}",
    "dollar": lambda i: f"${i + 1}",
}


def build_exists_query(
    table: str,
    column: str,
    values: Sequence[Any],
    where: Sequence[WhereClause],
    paramstyle: str = "qmark",
) -> tuple[str, list[Any]]:
    """Build the existence query and its positional arguments.

    Args:
        table: Table name (``schema.table`` allowed).
        column: Column compared against ``values``.
        values: Candidate values.
        where: Extra ``AND`` conditions.
        paramstyle: ``"qmark"`` (``?``), ``"format"`` (``%s``),
            ``"numeric"`` (``:1``) or ``"dollar"`` (``$1``).

    Returns:
        ``(sql, args)`` with values first, then where-clause values.

    Raises:
        ValueError: On an unsafe identifier, an unsupported operator or an
            unknown paramstyle.
    """
    placeholder = _PLACEHOLDERS.get(paramstyle)
    if placeholder is None:
        raise ValueError(f"Unsupported paramstyle: {paramstyle!r}")
    _require_identifier(table)
    _require_identifier(column)

    args: list[Any] = list(values)
    marks = ",".join(placeholder(i) for i in range(len(args)))
    sql = f"SELECT {column} FROM {table} WHERE {column} IN ({marks})"
    for clause in where:
        _require_identifier(clause.column)
        operator = _normalize_operator(clause.operator)
        sql += f" AND {clause.column} {operator} {placeholder(len(args))}"
        args.append(clause.value)
    return sql, args


def present_candidates(values: Iterable[Any], matched: Iterable[Any]) -> dict[Any, bool]:
    """Map the column values a store matched back onto the sent candidates.

    A candidate is present when it equals a matched value under
    :func:`~fieldcheck.db.reconciler.scalar_key`, or when both have the same
    text form (``1``, ``1.0`` and ``Decimal("1")`` read as ``"1"``).  Only
    rows the store returned for ``col IN (values)`` are passed in, so the
    looser text comparison never invents a match the store did not make.

    Args:
        values: Candidates sent in the lookup.
        matched: First column of every returned row.

    Returns:
        ``{candidate: True}`` for each candidate found.
    """
    keys = set()
    texts = set()
    for value in matched:
        keys.add(scalar_key(value))
        text = _text_form(value)
        if text is not None:
            texts.add(text)

    present: dict[Any, bool] = {}
    for value in values:
        if not isinstance(value, Hashable):
            continue
        if scalar_key(value) in keys or _text_form(value) in texts:
            present[value] = True
    return present


class DBAPIChecker:
    """:class:`~fieldcheck.db.checker.DBChecker` over a PEP 249 connection.

    Args:
        connection: An open DB-API connection.
        paramstyle: Placeholder style of the driver; see
            :func:`build_exists_query`.
    """

    def __init__(self, connection: Any, paramstyle: str = "qmark") -> None:
        self._conn = connection
        self._paramstyle = paramstyle

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
        if self._conn is None:
            raise NoConnectionError()
        _raise_if_cancelled(ctx)

        sql, args = build_exists_query(table, column, values, where, self._paramstyle)
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, args)
            rows = cursor.fetchall()
        finally:
            cursor.close()
        return present_candidates(values, [row[0] for row in rows])


class SQLAlchemyChecker:
    """:class:`~fieldcheck.db.checker.DBChecker` built on SQLAlchemy Core.

    Args:
        bind: An ``Engine`` (a connection is opened per lookup) or an open
            ``Connection`` (used as-is, e.g. inside a transaction).
    """

    def __init__(self, bind: Engine | Connection | None) -> None:
        self._bind = bind

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
        if self._bind is None:
            raise NoConnectionError()
        _raise_if_cancelled(ctx)

        stmt = self.build_statement(table, column, values, where)
        from sqlalchemy.engine import Engine

        if isinstance(self._bind, Engine):
            with self._bind.connect() as conn:
                rows = conn.execute(stmt).all()
        else:
            rows = self._bind.execute(stmt).all()
        return present_candidates(values, [row[0] for row in rows])

    @staticmethod
    def build_statement(
        table: str,
        column: str,
        values: Sequence[Any],
        where: Sequence[WhereClause],
    ):
        """Return the ``Select`` issued for a lookup.

        Raises:
            ImportError: If ``sqlalchemy`` is not installed.
            ValueError: On an unsafe identifier or unsupported operator.
        """
        try:
            from sqlalchemy import column as sa_column
            from sqlalchemy import select
            from sqlalchemy import table as sa_table
        except ImportError as exc:
            raise ImportError(
                "SQLAlchemy is required for SQLAlchemyChecker. "
                'Install it with: pip install "fieldcheck[sqlalchemy]"'
            ) from exc

        _require_identifier(table)
        _require_identifier(column)
        schema, _, name = table.rpartition(".")
        source = sa_table(name, schema=schema or None)
        target = sa_column(column)
        conditions = [target.in_(list(values))]
        for clause in where:
            _require_identifier(clause.column)
            conditions.append(_sa_condition(sa_column(clause.column), clause.operator, clause.value))
        return select(target).select_from(source).where(*conditions)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _raise_if_cancelled(ctx: CancelToken | None) -> None:
    if ctx is None:
        return
    err = ctx.error()
    if err is not None:
        raise err


def _text_form(value: Any) -> str | None:
    """Text a store would compare ``value`` as; ``None`` for bools and others."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        if value == value.to_integral_value():
            return str(int(value))
        return str(value.normalize())
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def _require_identifier(name: str) -> None:
    if not _IDENTIFIER.fullmatch(name):
        raise ValueError(f"Unsafe SQL identifier: {name!r}")


def _normalize_operator(operator: str) -> str:
    op = " ".join(operator.upper().split())
    if op not in SUPPORTED_OPERATORS:
        raise ValueError(
            f"Unsupported where operator: {operator!r}. Supported: {sorted(SUPPORTED_OPERATORS)}."
        )
    return op


def _sa_condition(col: Any, operator: str, value: Any) -> Any:
    op = _normalize_operator(operator)
    if op == "=":
        return col == value
    if op in ("!=", "<>"):
        return col != value
    if op == "<":
        return col < value
    if op == "<=":
        return col <= value
    if op == ">":
        return col > value
    if op == ">=":
        return col >= value
    if op == "LIKE":
        return col.like(value)
    return col.not_like(value)
