"""Batch grouping of declared checks.

Every check is assigned to exactly one :class:`BatchGroup` keyed by
``(table, column, where shape)``.  The where *shape* is the ordered list of
``(column, operator)`` pairs; literal where-values are not part of the key
unless ``include_where_values`` is set.  With the default key, checks that
differ only in where-values share one group and the group sends the values of
the check that created it.  Such collisions are logged at WARNING level.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from fieldcheck.pool import ObjectPool, pools
from fieldcheck.schema.rules import DBCheck, WhereClause

logger = logging.getLogger(__name__)

_KEY_SEP = ":"


@dataclass
class BatchGroup:
    """One unit of execution: a table/column/where combination.

    Attributes:
        key: The grouping key.
        table: Table to look in.
        column: Column compared with the values.
        where: Where-clauses taken from the check that created the group.
        checks: Checks sharing the key, in declaration order.
        values: Candidate values, one per check (duplicates kept).
    """

    key: str = ""
    table: str = ""
    column: str = ""
    where: tuple[WhereClause, ...] = ()
    checks: list[DBCheck] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)

    def reset(self) -> None:
        self.key = ""
        self.table = ""
        self.column = ""
        self.where = ()
        self.checks.clear()
        self.values.clear()

    def add(self, check: DBCheck) -> None:
        self.checks.append(check)
        self.values.append(check.value)

    def __len__(self) -> int:
        return len(self.checks)


def batch_group_pool() -> ObjectPool[BatchGroup]:
    return pools.get(
        "batch_group",
        lambda: ObjectPool(BatchGroup, BatchGroup.reset, max_size=64, oversize=64),
    )


def make_batch_key(
    table: str,
    column: str,
    where: Iterable[WhereClause],
    include_where_values: bool = False,
) -> str:
    """Return the grouping key for a check.

    Args:
        table: Looked-up table.
        column: Looked-up column.
        where: Where-clauses of the check; only their column/operator shape
            contributes to the key by default.
        include_where_values: Also include each clause's ``repr(value)``.

    Returns:
        ``"table:column"`` followed by ``":<col><op>"`` per clause.
    """
    parts = [table, column]
    for clause in where:
        part = clause.column + clause.operator
        if include_where_values:
            part += "=" + repr(clause.value)
        parts.append(part)
    return _KEY_SEP.join(parts)


def group_checks(
    checks: Iterable[DBCheck],
    include_where_values: bool = False,
) -> list[BatchGroup]:
    """Group ``checks`` into batch groups, preserving first-seen order.

    Args:
        checks: All checks collected during one validation call.
        include_where_values: Extend the key with where-clause values.

    Returns:
        The groups in the order their first check appeared.  Groups come from
        a shared pool; hand them back with :func:`release_groups`.
    """
    pool = batch_group_pool()
    by_key: dict[str, BatchGroup] = {}
    groups: list[BatchGroup] = []

    for check in checks:
        rule = check.rule
        key = make_batch_key(rule.table, rule.column, rule.where, include_where_values)
        group = by_key.get(key)
        if group is None:
            group = pool.acquire()
            group.key = key
            group.table = rule.table
            group.column = rule.column
            group.where = rule.where
            by_key[key] = group
            groups.append(group)
        elif not include_where_values and _where_values(rule.where) != _where_values(group.where):
            logger.warning(
                "check on %s uses where-values %r but batch %s sends %r",
                check.field,
                _where_values(rule.where),
                key,
                _where_values(group.where),
            )
        group.add(check)

    logger.debug("grouped checks into %d batch group(s)", len(groups))
    return groups


def release_groups(groups: Iterable[BatchGroup]) -> None:
    pool = batch_group_pool()
    for group in groups:
        pool.release(group)


def _where_values(where: Iterable[WhereClause]) -> tuple[Any, ...]:
    return tuple(clause.value for clause in where)
