"""External lookup rules and declared checks.

``ExistsRule`` / ``UniqueRule`` are attached to validators at schema build
time.  During a validation run validators *declare* :class:`DBCheck` records
from those rules; nothing here performs I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from fieldcheck.schema.messages import MessageArg


class WhereClause(BaseModel):
    """A ``(column, operator, value)`` condition narrowing a lookup.

    Attributes:
        column: Column name in the looked-up table.
        operator: Comparison operator, e.g. ``"="`` or ``"!="``.
        value: Literal compared against.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    column: str
    operator: str
    value: Any = None

    @property
    def shape(self) -> tuple[str, str]:
        """The ``(column, operator)`` pair used for batch grouping."""
        return (self.column, self.operator)


def where(column: str, operator: str, value: Any) -> WhereClause:
    """Arbitrary-operator where clause."""
    return WhereClause(column=column, operator=operator, value=value)


def where_eq(column: str, value: Any) -> WhereClause:
    """``column = value``."""
    return WhereClause(column=column, operator="=", value=value)


def where_not(column: str, value: Any) -> WhereClause:
    """``column != value``."""
    return WhereClause(column=column, operator="!=", value=value)


class ExistsRule(BaseModel):
    """The value must be present in ``table.column``.

    Attributes:
        table: Table to look in.
        column: Column compared with the field value.
        where: Extra conditions narrowing the lookup.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    table: str
    column: str
    where: tuple[WhereClause, ...] = ()


class UniqueRule(ExistsRule):
    """The value must *not* be present in ``table.column``.

    Attributes:
        ignore: A value that is allowed to exist, typically the record's own
            current value during an update.
    """

    ignore: Any = None


@dataclass
class DBCheck:
    """One declared external-lookup requirement.

    Attributes:
        field: Dotted path of the field being checked (the error key).
        value: Scalar value to test.
        rule: Table, column and where-clauses to test against.
        is_unique: ``True`` for uniqueness, ``False`` for existence.
        ignore: Value exempt from the uniqueness requirement.
        message: Optional custom message.
    """

    field: str
    value: Any
    rule: ExistsRule
    is_unique: bool = False
    ignore: Any = None
    message: MessageArg | None = None


def exists_check(field_path: str, value: Any, rule: ExistsRule, message: MessageArg | None = None) -> DBCheck:
    return DBCheck(field=field_path, value=value, rule=rule, message=message)


def unique_check(field_path: str, value: Any, rule: UniqueRule, message: MessageArg | None = None) -> DBCheck:
    return DBCheck(
        field=field_path,
        value=value,
        rule=ExistsRule(table=rule.table, column=rule.column, where=rule.where),
        is_unique=True,
        ignore=rule.ignore,
        message=message,
    )
