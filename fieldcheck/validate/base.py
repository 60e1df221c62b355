"""Validator capabilities and the shared field-validator base.

Two capabilities, checked structurally rather than through inheritance:

``Validator``
    ``validate(ctx, value) -> {path: [messages]}``. Mandatory.
``DeclaresChecks``
    ``declare_checks(field_path, value) -> [DBCheck]``. Optional: validators
    with Exists/Unique rules (or containing such validators) implement it.

:class:`FieldValidator` carries the gating every concrete validator shares:
``required`` / ``required_if`` / ``required_unless``, ``nullable``, custom
messages and the ``custom`` hook.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, Self, runtime_checkable

from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.messages import MessageArg, MessageContext, resolve_message
from fieldcheck.schema.paths import DataAccessor, LookupResult, extract_index, lookup_path
from fieldcheck.schema.rules import DBCheck, ExistsRule, UniqueRule, WhereClause, exists_check, unique_check

#: Field path -> ordered messages.
FieldErrors = dict[str, list[str]]

#: ``fn(root_data) -> bool`` used by ``required_if`` / ``required_unless``.
Condition = Callable[[Mapping[str, Any]], bool]

#: ``lookup("other.path") -> LookupResult`` handed to custom hooks.
Lookup = Callable[[str], LookupResult]

#: ``fn(value, lookup)``; raise ``ValueError`` to reject the value.
CustomFunc = Callable[[Any, Lookup], None]


@runtime_checkable
class Validator(Protocol):
    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors: ...


@runtime_checkable
class DeclaresChecks(Protocol):
    def declare_checks(self, field_path: str, value: Any) -> list[DBCheck]: ...


_UNSET = object()

#: Field name -> validator.
Schema = Mapping[str, Validator]


def declared_checks(validator: Any, field_path: str, value: Any) -> list[DBCheck]:
    """Checks declared by ``validator``, or ``[]`` if it declares none."""
    if isinstance(validator, DeclaresChecks):
        return validator.declare_checks(field_path, value)
    return []


def merge_errors(into: FieldErrors, new: Mapping[str, list[str]] | None) -> None:
    """Append every message of ``new`` onto ``into``, keeping order per field."""
    if not new:
        return
    for path, messages in new.items():
        into.setdefault(path, []).extend(messages)


class FieldValidator:
    """Base class for the concrete validators.

    Subclasses implement :meth:`validate` and call :meth:`_presence` first.
    """

    def __init__(self) -> None:
        self._required = False
        self._required_if: Condition | None = None
        self._required_unless: Condition | None = None
        self._nullable = False
        self._messages: dict[str, MessageArg] = {}
        self._custom: CustomFunc | None = None
        self._default: Any = _UNSET

    # ------------------------------------------------------------------
    # Fluent API
    # ------------------------------------------------------------------

    def required(self, message: MessageArg | None = None) -> Self:
        """The field must be present (and, for strings, non-empty)."""
        self._required = True
        self._set_message("required", message)
        return self

    def required_if(self, fn: Condition, message: MessageArg | None = None) -> Self:
        """The field is required when ``fn(root_data)`` is true."""
        self._required_if = fn
        self._set_message("required", message)
        return self

    def required_unless(self, fn: Condition, message: MessageArg | None = None) -> Self:
        """The field is required unless ``fn(root_data)`` is true."""
        self._required_unless = fn
        self._set_message("required", message)
        return self

    def default(self, value: Any) -> Self:
        """Substitute ``value`` when the field is missing."""
        self._default = value
        return self

    def nullable(self) -> Self:
        """Accept ``None`` unconditionally."""
        self._nullable = True
        return self

    def message(self, rule: str, message: MessageArg) -> Self:
        """Override the message of ``rule``."""
        self._messages[rule] = message
        return self

    def custom(self, fn: CustomFunc) -> Self:
        """Run ``fn(value, lookup)`` last; a ``ValueError`` rejects the value."""
        self._custom = fn
        return self

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _set_message(self, rule: str, message: MessageArg | None) -> None:
        if message is not None:
            self._messages[rule] = message

    def _is_required(self, ctx: ValidationContext) -> bool:
        if self._required:
            return True
        if self._required_if is not None and self._required_if(ctx.root):
            return True
        if self._required_unless is not None and not self._required_unless(ctx.root):
            return True
        return False

    def _message_context(self, ctx: ValidationContext, value: Any) -> MessageContext:
        path = ctx.full_path
        return MessageContext(
            field=ctx.field_name,
            path=path,
            index=extract_index(path),
            value=value,
            data=DataAccessor(ctx.root),
        )

    def _msg(self, rule: str, default: str, mctx: MessageContext, param: Any = None) -> str:
        message = self._messages.get(rule)
        if message is None:
            return default
        return resolve_message(message, mctx.with_rule(rule, param))

    def _add(
        self,
        errors: FieldErrors,
        ctx: ValidationContext,
        mctx: MessageContext,
        rule: str,
        default: str,
        param: Any = None,
    ) -> None:
        errors.setdefault(ctx.full_path, []).append(self._msg(rule, default, mctx, param))

    def _required_error(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        mctx = self._message_context(ctx, value)
        return {ctx.full_path: [self._msg("required", f"{ctx.field_name} is required", mctx)]}

    def _with_default(self, value: Any) -> Any:
        """``value``, or the configured default when it is ``None``."""
        if value is None and not self._nullable and self._default is not _UNSET:
            return self._default
        return value

    def _presence(self, ctx: ValidationContext, value: Any) -> FieldErrors | None:
        """Handle a missing value.

        Returns:
            ``None`` when ``value`` is present and validation should go on;
            otherwise the (possibly empty) final result for the field.
        """
        if value is not None:
            return None
        if self._nullable or not self._is_required(ctx):
            return {}
        return self._required_error(ctx, value)

    def _run_custom(
        self,
        errors: FieldErrors,
        ctx: ValidationContext,
        mctx: MessageContext,
        value: Any,
    ) -> None:
        if self._custom is None:
            return
        root = ctx.root
        try:
            self._custom(value, lambda path: lookup_path(root, path))
        except ValueError as exc:
            self._add(errors, ctx, mctx, "custom", str(exc))


def is_number(value: Any) -> bool:
    """``int``/``float`` but not ``bool``."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class DBRulesMixin:
    """``exists()`` / ``unique()`` for validators of scalar values.

    Subclasses decide which values are eligible through :meth:`_check_value`.
    """

    _exists: ExistsRule | None = None
    _unique: UniqueRule | None = None
    _messages: dict[str, MessageArg]

    def exists(self, table: str, column: str, *where: WhereClause, message: MessageArg | None = None) -> Self:
        """The value must be present in ``table.column``."""
        self._exists = ExistsRule(table=table, column=column, where=where)
        if message is not None:
            self._messages["exists"] = message
        return self

    def unique(
        self,
        table: str,
        column: str,
        ignore: Any = None,
        *where: WhereClause,
        message: MessageArg | None = None,
    ) -> Self:
        """The value must not be present in ``table.column`` (``ignore`` excepted)."""
        self._unique = UniqueRule(table=table, column=column, ignore=ignore, where=where)
        if message is not None:
            self._messages["unique"] = message
        return self

    def _check_value(self, value: Any) -> Any:
        """The value to look up, or ``None`` when ``value`` is not eligible."""
        return value

    def declare_checks(self, field_path: str, value: Any) -> list[DBCheck]:
        if self._exists is None and self._unique is None:
            return []
        value = self._check_value(value)
        if value is None:
            return []
        checks = []
        if self._exists is not None:
            checks.append(exists_check(field_path, value, self._exists, self._messages.get("exists")))
        if self._unique is not None:
            checks.append(unique_check(field_path, value, self._unique, self._messages.get("unique")))
        return checks
