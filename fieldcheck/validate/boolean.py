"""Boolean validator."""
from __future__ import annotations

from typing import Any, Self

from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.messages import MessageArg
from fieldcheck.validate.base import FieldErrors, FieldValidator, is_number

_TRUTHY = frozenset({"true", "1", "yes", "on"})
_FALSY = frozenset({"false", "0", "no", "off", ""})


class BoolValidator(FieldValidator):
    def __init__(self) -> None:
        super().__init__()
        self._coerce = False
        self._must_be: bool | None = None

    def coerce(self) -> Self:
        """Accept ``"true"``/``"yes"``/``"on"``/``"1"`` (and their opposites) and numbers."""
        self._coerce = True
        return self

    def true(self, message: MessageArg | None = None) -> Self:
        """The value must be ``True`` (e.g. accepted terms)."""
        self._must_be = True
        self._set_message("true", message)
        return self

    def false(self, message: MessageArg | None = None) -> Self:
        self._must_be = False
        self._set_message("false", message)
        return self

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        value = self._with_default(value)
        done = self._presence(ctx, value)
        if done is not None:
            return done

        name = ctx.field_name
        if self._coerce:
            value = coerce_bool(value)
        mctx = self._message_context(ctx, value)
        if not isinstance(value, bool):
            return {ctx.full_path: [self._msg("type", f"{name} must be a boolean", mctx)]}

        errors: FieldErrors = {}
        if self._must_be is True and not value:
            self._add(errors, ctx, mctx, "true", f"{name} must be true")
        if self._must_be is False and value:
            self._add(errors, ctx, mctx, "false", f"{name} must be false")
        self._run_custom(errors, ctx, mctx, value)
        return errors


def Bool() -> BoolValidator:
    """Create a boolean validator."""
    return BoolValidator()


def coerce_bool(value: Any) -> Any:
    """Map common textual and numeric spellings to ``bool``; others pass through."""
    if isinstance(value, str):
        if value in _TRUTHY:
            return True
        if value in _FALSY:
            return False
        return value
    if is_number(value):
        return value != 0
    return value
