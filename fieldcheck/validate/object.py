"""Nested object validator.

Unknown keys are allowed unless :meth:`ObjectValidator.strict` is set.
``pick``, ``omit``, ``partial``, ``extend`` and ``merge`` return new
validators and leave the receiver untouched.
"""
from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Self

from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.messages import MessageArg
from fieldcheck.schema.rules import DBCheck
from fieldcheck.validate.base import FieldErrors, FieldValidator, Schema, Validator, merge_errors
from fieldcheck.validate.composite import OptionalValidator
from fieldcheck.validate.walker import collect_checks, validate_fields


class ObjectValidator(FieldValidator):
    def __init__(self, schema: Schema | None = None) -> None:
        super().__init__()
        self._schema: dict[str, Validator] = dict(schema or {})
        self._strict = False

    def shape(self, schema: Schema) -> Self:
        """Set the nested schema."""
        self._schema = dict(schema)
        return self

    def strict(self, message: MessageArg | None = None) -> Self:
        """Report keys that the nested schema does not declare."""
        self._strict = True
        self._set_message("strict", message)
        return self

    def passthrough(self) -> Self:
        """Allow unknown keys (the default)."""
        self._strict = False
        return self

    def pick(self, *fields: str) -> ObjectValidator:
        """Copy keeping only ``fields`` of the nested schema."""
        return self._derive({k: v for k, v in self._schema.items() if k in fields})

    def omit(self, *fields: str) -> ObjectValidator:
        """Copy without ``fields``."""
        return self._derive({k: v for k, v in self._schema.items() if k not in fields})

    def partial(self) -> ObjectValidator:
        """Copy where every nested field and the object itself are optional."""
        clone = self._derive({k: OptionalValidator(v) for k, v in self._schema.items()})
        clone._required = False
        clone._required_if = None
        clone._required_unless = None
        return clone

    def extend(self, additional: Schema) -> ObjectValidator:
        """Copy with ``additional`` fields added (or replaced)."""
        return self._derive({**self._schema, **additional})

    def merge(self, other: ObjectValidator) -> ObjectValidator:
        """Combine two object validators; ``other`` wins on conflicting fields."""
        clone = self._derive({**self._schema, **other._schema})
        clone._required = self._required or other._required
        clone._strict = self._strict or other._strict
        clone._nullable = self._nullable and other._nullable
        clone._messages.update(other._messages)
        return clone

    def _derive(self, schema: dict[str, Validator]) -> ObjectValidator:
        clone = copy.copy(self)
        clone._messages = dict(self._messages)
        clone._schema = schema
        return clone

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        value = self._with_default(value)
        done = self._presence(ctx, value)
        if done is not None:
            return done

        mctx = self._message_context(ctx, value)
        if not isinstance(value, Mapping):
            return {ctx.full_path: [self._msg("type", f"{ctx.field_name} must be an object", mctx)]}

        errors: FieldErrors = {}
        if self._strict and self._schema:
            for key in value:
                if key not in self._schema:
                    self._add(errors, ctx, mctx, "strict", f"unknown field: {key}", key)

        merge_errors(errors, validate_fields(ctx, value, self._schema))

        self._run_custom(errors, ctx, mctx, value)
        return errors

    def declare_checks(self, field_path: str, value: Any) -> list[DBCheck]:
        if not isinstance(value, Mapping) or not self._schema:
            return []
        return collect_checks(field_path, value, self._schema)


def Object(schema: Schema | None = None) -> ObjectValidator:
    """Create an object validator, optionally with its nested schema."""
    return ObjectValidator(schema)
