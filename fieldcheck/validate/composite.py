"""Enum, Literal, Union, Optional and Any validators."""
from __future__ import annotations

import enum
from typing import Any

from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.rules import DBCheck
from fieldcheck.validate.base import FieldErrors, FieldValidator, Validator, declared_checks, is_number


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def _same(a: Any, b: Any) -> bool:
    return _kind(a) == _kind(b) and a == b


def _text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class EnumValidator(FieldValidator):
    """The value must equal one of a fixed set.

    Numbers compare by value (``1 == 1.0``); ``bool`` never matches a number.
    """

    def __init__(self, values: tuple[Any, ...]) -> None:
        super().__init__()
        self._values = values

    def in_(self, *values: Any) -> EnumValidator:
        self._values = values
        return self

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        value = self._with_default(value)
        done = self._presence(ctx, value)
        if done is not None:
            return done

        name = ctx.field_name
        mctx = self._message_context(ctx, value)
        if self._values and _kind(value) not in {_kind(v) for v in self._values}:
            return {ctx.full_path: [self._msg("type", f"{name} has invalid type", mctx)]}

        errors: FieldErrors = {}
        if not any(_same(value, allowed) for allowed in self._values):
            allowed = ", ".join(_text(v) for v in self._values)
            self._add(errors, ctx, mctx, "enum", f"{name} must be one of: {allowed}", list(self._values))
        self._run_custom(errors, ctx, mctx, value)
        return errors


def Enum(*values: Any) -> EnumValidator:
    """Create an enum validator.

    Accepts the allowed values, or a single :class:`enum.Enum` subclass whose
    member values are allowed.
    """
    if len(values) == 1 and isinstance(values[0], type) and issubclass(values[0], enum.Enum):
        values = tuple(member.value for member in values[0])
    return EnumValidator(values)


class LiteralValidator(FieldValidator):
    def __init__(self, expected: Any) -> None:
        super().__init__()
        self._expected = expected

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        done = self._presence(ctx, value)
        if done is not None:
            return done

        name = ctx.field_name
        mctx = self._message_context(ctx, value)
        if _kind(value) != _kind(self._expected):
            return {ctx.full_path: [self._msg("type", f"{name} has invalid type", mctx)]}
        if value != self._expected:
            msg = self._msg("literal", f"{name} must be exactly {_text(self._expected)}", mctx, self._expected)
            return {ctx.full_path: [msg]}
        return {}


def Literal(expected: Any) -> LiteralValidator:
    """The value must be exactly ``expected``."""
    return LiteralValidator(expected)


class UnionValidator(FieldValidator):
    """Passes when any member passes; members are tried in order.

    Member messages are not reported, only the union's own message.
    Every member's checks are declared, whichever member matched.
    """

    def __init__(self, members: tuple[Validator, ...]) -> None:
        super().__init__()
        self._members = members

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        done = self._presence(ctx, value)
        if done is not None:
            return done
        for member in self._members:
            if not member.validate(ctx, value):
                return {}
        mctx = self._message_context(ctx, value)
        msg = self._msg("union", f"{ctx.field_name} does not match any of the expected types", mctx)
        return {ctx.full_path: [msg]}

    def declare_checks(self, field_path: str, value: Any) -> list[DBCheck]:
        checks: list[DBCheck] = []
        for member in self._members:
            checks.extend(declared_checks(member, field_path, value))
        return checks


def Union(*members: Validator) -> UnionValidator:
    return UnionValidator(members)


class OptionalValidator:
    """Skips ``inner`` for ``None`` and ``""``; otherwise delegates to it."""

    def __init__(self, inner: Validator) -> None:
        self.inner = inner

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        if value is None or value == "":
            return {}
        return self.inner.validate(ctx, value)

    def declare_checks(self, field_path: str, value: Any) -> list[DBCheck]:
        return declared_checks(self.inner, field_path, value)


def Optional(inner: Validator) -> OptionalValidator:
    return OptionalValidator(inner)


class AnyValidator(FieldValidator):
    """Accepts any value; only presence rules and ``custom`` apply."""

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        value = self._with_default(value)
        done = self._presence(ctx, value)
        if done is not None:
            return done
        errors: FieldErrors = {}
        self._run_custom(errors, ctx, self._message_context(ctx, value), value)
        return errors


def AnyValue() -> AnyValidator:
    """Create a validator that accepts any present value."""
    return AnyValidator()
