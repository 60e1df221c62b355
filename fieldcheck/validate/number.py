"""Numeric validators: :func:`Int` and :func:`Float`.

``bool`` is never a number.  With :meth:`NumberValidator.coerce`, numeric
strings such as ``"42"`` are parsed first.  ``Int()`` accepts integral floats
(``3.0``, common in decoded JSON) and reports any other float as not being
an integer.
"""
from __future__ import annotations

import math
import re
from collections.abc import Callable
from typing import Any, Self

from fieldcheck.cache import user_pattern
from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.messages import MessageArg
from fieldcheck.schema.paths import lookup_path
from fieldcheck.validate.base import DBRulesMixin, FieldErrors, FieldValidator, is_number

Number = int | float

_COMPARISONS: tuple[tuple[str, str, Callable[[Number, Number], bool]], ...] = (
    ("less_than", "less than", lambda a, b: a < b),
    ("greater_than", "greater than", lambda a, b: a > b),
    ("less_than_or_equal", "less than or equal to", lambda a, b: a <= b),
    ("greater_than_or_equal", "greater than or equal to", lambda a, b: a >= b),
)


class NumberValidator(DBRulesMixin, FieldValidator):
    """Validates numeric values.

    Args:
        integer_only: Accept only integral values and hand ``int`` to later
            rules, custom hooks and declared checks.
    """

    def __init__(self, integer_only: bool = False) -> None:
        super().__init__()
        self._integer_only = integer_only
        self._coerce = False
        self._min: Number | None = None
        self._max: Number | None = None
        self._positive = False
        self._negative = False
        self._multiple_of: Number | None = None
        self._integer = False
        self._in: tuple[Number, ...] = ()
        self._not_in: tuple[Number, ...] = ()
        self._min_digits: int | None = None
        self._max_digits: int | None = None
        self._regex: re.Pattern[str] | None = None
        self._not_regex: re.Pattern[str] | None = None
        self._cross: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Fluent API
    # ------------------------------------------------------------------

    def coerce(self) -> Self:
        """Parse numeric strings before type checking."""
        self._coerce = True
        return self

    def min(self, n: Number, message: MessageArg | None = None) -> Self:
        self._min = n
        self._set_message("min", message)
        return self

    def max(self, n: Number, message: MessageArg | None = None) -> Self:
        self._max = n
        self._set_message("max", message)
        return self

    def between(self, low: Number, high: Number, message: MessageArg | None = None) -> Self:
        """``low <= value <= high``; ``message`` covers both bounds."""
        self._min, self._max = low, high
        self._set_message("between", message)
        return self

    def positive(self, message: MessageArg | None = None) -> Self:
        self._positive = True
        self._set_message("positive", message)
        return self

    def negative(self, message: MessageArg | None = None) -> Self:
        self._negative = True
        self._set_message("negative", message)
        return self

    def multiple_of(self, n: Number, message: MessageArg | None = None) -> Self:
        self._multiple_of = n
        self._set_message("multiple_of", message)
        return self

    step = multiple_of

    def integer(self, message: MessageArg | None = None) -> Self:
        """Reject floats with a fractional part."""
        self._integer = True
        self._set_message("integer", message)
        return self

    def in_(self, *values: Number, message: MessageArg | None = None) -> Self:
        self._in = values
        self._set_message("in", message)
        return self

    def not_in(self, *values: Number, message: MessageArg | None = None) -> Self:
        self._not_in = values
        self._set_message("not_in", message)
        return self

    def min_digits(self, n: int, message: MessageArg | None = None) -> Self:
        self._min_digits = n
        self._set_message("min_digits", message)
        return self

    def max_digits(self, n: int, message: MessageArg | None = None) -> Self:
        self._max_digits = n
        self._set_message("max_digits", message)
        return self

    def regex(self, pattern: str, message: MessageArg | None = None) -> Self:
        """Match the value's decimal text against ``pattern``."""
        self._regex = user_pattern(pattern)
        self._set_message("regex", message)
        return self

    def not_regex(self, pattern: str, message: MessageArg | None = None) -> Self:
        self._not_regex = user_pattern(pattern)
        self._set_message("not_regex", message)
        return self

    def less_than(self, field_path: str, message: MessageArg | None = None) -> Self:
        return self._compare_with("less_than", field_path, message)

    def greater_than(self, field_path: str, message: MessageArg | None = None) -> Self:
        return self._compare_with("greater_than", field_path, message)

    def less_than_or_equal(self, field_path: str, message: MessageArg | None = None) -> Self:
        return self._compare_with("less_than_or_equal", field_path, message)

    def greater_than_or_equal(self, field_path: str, message: MessageArg | None = None) -> Self:
        return self._compare_with("greater_than_or_equal", field_path, message)

    def _compare_with(self, rule: str, field_path: str, message: MessageArg | None) -> Self:
        self._cross[rule] = field_path
        self._set_message(rule, message)
        return self

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        value = self._with_default(value)
        done = self._presence(ctx, value)
        if done is not None:
            return done

        name = ctx.field_name
        if self._coerce and isinstance(value, str):
            value = _parse_number(value, value)

        mctx = self._message_context(ctx, value)
        if not is_number(value):
            return {ctx.full_path: [self._msg("type", f"{name} must be a number", mctx)]}

        errors: FieldErrors = {}
        if self._integer_only and not _is_integral(value):
            self._add(errors, ctx, mctx, "integer", f"{name} must be an integer")
            return errors

        num = self._normalize(value)
        mctx = self._message_context(ctx, num)

        def add(rule: str, default: str, param: Any = None) -> None:
            self._add(errors, ctx, mctx, rule, default, param)

        bound = "between" in self._messages
        if self._min is not None and num < self._min:
            add("between" if bound else "min", f"{name} must be at least {self._min}", self._min)
        if self._max is not None and num > self._max:
            add("between" if bound else "max", f"{name} must be at most {self._max}", self._max)
        if self._positive and num <= 0:
            add("positive", f"{name} must be positive")
        if self._negative and num >= 0:
            add("negative", f"{name} must be negative")
        if self._multiple_of and not _is_multiple(num, self._multiple_of):
            add("multiple_of", f"{name} must be a multiple of {self._multiple_of}", self._multiple_of)
        if self._integer and not _is_integral(num):
            add("integer", f"{name} must be an integer")
        if self._in and num not in self._in:
            add("in", f"{name} must be one of the allowed values", list(self._in))
        if self._not_in and num in self._not_in:
            add("not_in", f"{name} must not be one of the disallowed values", list(self._not_in))

        text = format_number(num)
        digits = len(text.lstrip("-").replace(".", "", 1))
        if self._min_digits is not None and digits < self._min_digits:
            add("min_digits", f"{name} must have at least {self._min_digits} digits", self._min_digits)
        if self._max_digits is not None and digits > self._max_digits:
            add("max_digits", f"{name} must have at most {self._max_digits} digits", self._max_digits)
        if self._regex is not None and not self._regex.search(text):
            add("regex", f"{name} format is invalid")
        if self._not_regex is not None and self._not_regex.search(text):
            add("not_regex", f"{name} format is invalid")

        for rule, words, holds in _COMPARISONS:
            other_path = self._cross.get(rule)
            if not other_path:
                continue
            other = lookup_path(ctx.root, other_path)
            if other.exists and is_number(other.value) and not holds(num, other.value):
                add(rule, f"{name} must be {words} {other_path}", other_path)

        self._run_custom(errors, ctx, mctx, num)
        return errors

    def _normalize(self, value: Number) -> Number:
        if self._integer_only:
            return int(value)
        return float(value)

    def _check_value(self, value: Any) -> Any:
        if self._coerce and isinstance(value, str):
            value = _parse_number(value, None)
        if not is_number(value) or (self._integer_only and not _is_integral(value)):
            return None
        return self._normalize(value)


def Int() -> NumberValidator:
    """Create an integer validator."""
    return NumberValidator(integer_only=True)


def Float() -> NumberValidator:
    """Create a float validator."""
    return NumberValidator()


def format_number(num: Number) -> str:
    """Decimal text of ``num`` without a trailing ``.0`` for integral floats."""
    if isinstance(num, float) and num.is_integer():
        return str(int(num))
    return str(num)


def _parse_number(text: str, fallback: Any) -> Any:
    try:
        return float(text.strip())
    except ValueError:
        return fallback


def _is_integral(value: Number) -> bool:
    if isinstance(value, int):
        return True
    return math.isfinite(value) and value.is_integer()


def _is_multiple(num: Number, step: Number) -> bool:
    if isinstance(num, int) and isinstance(step, int):
        return num % step == 0
    remainder = math.fmod(num, step)
    return math.isclose(remainder, 0.0, abs_tol=1e-9) or math.isclose(abs(remainder), abs(step), abs_tol=1e-9)
