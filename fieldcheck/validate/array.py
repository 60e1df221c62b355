"""Array validator.

Rules run in order: presence, type, ``length``, ``min``, ``max``, ``unique``,
``contains``, ``doesnt_contain``, element validation, ``custom``.  Element
errors are keyed ``<field>.<index>``.

Element validation can be spread over a bounded thread pool with
:meth:`ArrayValidator.concurrent`; element results are merged in index
order, so the outcome is the same as the sequential walk.
"""
from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Self

from fieldcheck.db.reconciler import scalar_key
from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.messages import MessageArg, MessageContext
from fieldcheck.schema.paths import DataAccessor, build_path
from fieldcheck.schema.rules import DBCheck, ExistsRule, WhereClause, exists_check
from fieldcheck.validate.base import FieldErrors, FieldValidator, Validator, declared_checks, merge_errors


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class ArrayValidator(FieldValidator):
    def __init__(self, element: Validator | None = None) -> None:
        super().__init__()
        self._element = element
        self._length: int | None = None
        self._min: int | None = None
        self._max: int | None = None
        self._unique = False
        self._contains: tuple[Any, ...] = ()
        self._doesnt_contain: tuple[Any, ...] = ()
        self._exists: ExistsRule | None = None
        self._workers = 0

    def of(self, element: Validator) -> Self:
        """Validate every element with ``element``."""
        self._element = element
        return self

    def length(self, n: int, message: MessageArg | None = None) -> Self:
        self._length = n
        self._set_message("length", message)
        return self

    def min(self, n: int, message: MessageArg | None = None) -> Self:
        self._min = n
        self._set_message("min", message)
        return self

    def max(self, n: int, message: MessageArg | None = None) -> Self:
        self._max = n
        self._set_message("max", message)
        return self

    def nonempty(self, message: MessageArg | None = None) -> Self:
        return self.min(1, message)

    def unique(self, message: MessageArg | None = None) -> Self:
        """Report every element equal to an earlier one."""
        self._unique = True
        self._set_message("unique", message)
        return self

    distinct = unique

    def contains(self, *values: Any, message: MessageArg | None = None) -> Self:
        self._contains = values
        self._set_message("contains", message)
        return self

    def doesnt_contain(self, *values: Any, message: MessageArg | None = None) -> Self:
        self._doesnt_contain = values
        self._set_message("doesnt_contain", message)
        return self

    def exists(self, table: str, column: str, *where: WhereClause, message: MessageArg | None = None) -> Self:
        """Every element must be present in ``table.column``."""
        self._exists = ExistsRule(table=table, column=column, where=where)
        self._set_message("exists", message)
        return self

    def concurrent(self, workers: int) -> Self:
        """Validate elements on up to ``workers`` threads (0 = sequential)."""
        self._workers = max(0, workers)
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
        mctx = self._message_context(ctx, value)
        if not _is_array(value):
            return {ctx.full_path: [self._msg("type", f"{name} must be an array", mctx)]}

        errors: FieldErrors = {}
        size = len(value)
        if self._length is not None and size != self._length:
            self._add(errors, ctx, mctx, "length", f"{name} must have exactly {self._length} elements", self._length)
        if self._min is not None and size < self._min:
            self._add(errors, ctx, mctx, "min", f"{name} must have at least {self._min} elements", self._min)
        if self._max is not None and size > self._max:
            self._add(errors, ctx, mctx, "max", f"{name} must have at most {self._max} elements", self._max)

        if self._unique:
            seen: set[tuple[str, Any]] = set()
            for i, item in enumerate(value):
                key = scalar_key(item)
                if key in seen:
                    self._add_element(errors, ctx, i, item, "unique", f"{name}[{i}] is a duplicate")
                seen.add(key)

        if self._contains:
            keys = {scalar_key(item) for item in value}
            for required in self._contains:
                if scalar_key(required) not in keys:
                    self._add(errors, ctx, mctx, "contains", f"{name} must contain {required}", required)

        for forbidden in self._doesnt_contain:
            key = scalar_key(forbidden)
            for i, item in enumerate(value):
                if scalar_key(item) == key:
                    self._add_element(
                        errors, ctx, i, item, "doesnt_contain", f"{name} must not contain {forbidden}", forbidden
                    )

        if self._element is not None:
            merge_errors(errors, self._validate_elements(ctx, self._element, value))

        self._run_custom(errors, ctx, mctx, value)
        return errors

    def _validate_elements(self, ctx: ValidationContext, element: Validator, items: Sequence[Any]) -> FieldErrors:
        def run(index: int) -> FieldErrors:
            return element.validate(ctx.child(index), items[index])

        if self._workers > 0 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="fieldcheck-array") as pool:
                results = list(pool.map(run, range(len(items))))
        else:
            results = [run(i) for i in range(len(items))]

        errors: FieldErrors = {}
        for result in results:
            merge_errors(errors, result)
        return errors

    def _add_element(
        self,
        errors: FieldErrors,
        ctx: ValidationContext,
        index: int,
        item: Any,
        rule: str,
        default: str,
        param: Any = None,
    ) -> None:
        path = build_path(ctx.full_path, str(index))
        mctx = MessageContext(
            field=ctx.field_name,
            path=path,
            index=index,
            value=item,
            data=DataAccessor(ctx.root),
        )
        errors.setdefault(path, []).append(self._msg(rule, default, mctx, param))

    def declare_checks(self, field_path: str, value: Any) -> list[DBCheck]:
        if not _is_array(value):
            return []
        checks: list[DBCheck] = []
        if self._exists is not None:
            message = self._messages.get("exists")
            for i, item in enumerate(value):
                if item is not None:
                    checks.append(exists_check(build_path(field_path, str(i)), item, self._exists, message))
        if self._element is not None:
            for i, item in enumerate(value):
                checks.extend(declared_checks(self._element, build_path(field_path, str(i)), item))
        return checks


def Array(element: Validator | None = None) -> ArrayValidator:
    """Create an array validator, optionally with its element validator."""
    return ArrayValidator(element)
