"""Mapping of lookup results back onto the originating checks.

Membership is tested with :func:`scalar_key` rather than ``==``/``hash``.
The bundled adapters key their answer by the candidates as sent (see
:func:`fieldcheck.db.adapters.present_candidates`), so cross-type matches
made by the store survive.  Custom checkers that answer with their own row
values are compared by these rules:

* ``int``, ``float`` and ``Decimal`` with the same numeric value are equal
  (``1 == 1.0 == Decimal("1")``), so a JSON ``1.0`` matches an ``INTEGER`` row.
* ``bool`` is its own kind: ``True`` never matches ``1``.
* ``str`` never matches a number: ``"1"`` and ``1`` are different values.
* ``bytes`` are compared as UTF-8 text when decodable.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from fieldcheck.db.executor import GroupResult
from fieldcheck.schema.messages import MessageContext, resolve_message
from fieldcheck.schema.paths import DataAccessor, extract_index
from fieldcheck.schema.rules import DBCheck


def scalar_key(value: Any) -> tuple[str, Any]:
    """Canonical, hashable key for a heterogeneous scalar."""
    if value is None:
        return ("null", None)
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float, Decimal)):
        return ("num", _canonical_number(value))
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return ("str", raw.decode("utf-8"))
        except UnicodeDecodeError:
            return ("bytes", raw)
    if isinstance(value, str):
        return ("str", value)
    try:
        hash(value)
    except TypeError:
        return ("repr", repr(value))
    return ("obj", value)


def scalars_equal(a: Any, b: Any) -> bool:
    return scalar_key(a) == scalar_key(b)


def membership_set(membership: Mapping[Any, bool]) -> set[tuple[str, Any]]:
    """Canonical keys of the values a checker reported as present."""
    return {scalar_key(value) for value, present in membership.items() if present}


def reconcile(
    results: Iterable[GroupResult],
    root: Mapping[str, Any] | None = None,
) -> dict[str, list[str]]:
    """Turn group results into field-keyed error messages.

    Args:
        results: One result per executed group, in any order.
        root: The root data object, exposed to custom message functions.

    Returns:
        Mapping of field path to messages; fields without errors are absent.
    """
    errors: dict[str, list[str]] = {}
    data = DataAccessor(root)
    for result in results:
        if result.error is not None:
            for check in result.group.checks:
                errors.setdefault(check.field, []).append(f"database error: {result.error}")
            continue

        present = membership_set(result.membership)
        for check in result.group.checks:
            message = _check_message(check, scalar_key(check.value) in present, data)
            if message is not None:
                errors.setdefault(check.field, []).append(message)
    return errors


def _check_message(check: DBCheck, exists: bool, data: DataAccessor) -> str | None:
    if check.is_unique:
        if not exists or scalars_equal(check.value, check.ignore):
            return None
        rule, default = "unique", f"{check.field} already exists"
    else:
        if exists:
            return None
        rule, default = "exists", f"{check.field} does not exist"

    if check.message is None:
        return default
    ctx = MessageContext(
        field=check.field.rsplit(".", 1)[-1],
        path=check.field,
        index=extract_index(check.field),
        value=check.value,
        rule=rule,
        param=check.rule.table,
        data=data,
    )
    return resolve_message(check.message, ctx)


def _canonical_number(value: int | float | Decimal) -> Any:
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return value
        return int(value) if value.is_integer() else value
    if not value.is_finite():
        return float(value)
    try:
        if value == value.to_integral_value():
            return int(value)
    except InvalidOperation:
        return value
    return float(value)
