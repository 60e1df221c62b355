"""Schema walk: structural validation, then batched external checks.

A validation call runs in two phases:

1. **Walk.** Every field of the schema is validated against a child context
   and its messages are merged into one map.  Right after a field has been
   validated, the checks its validator declares are appended to a single
   list for the whole call.  No I/O happens in this phase.
2. **Lookups.** If a checker is configured, at least one check was
   declared and (by default) no structural error was found, the collected
   checks are grouped, looked up and reconciled by
   :func:`fieldcheck.db.pipeline.run_db_checks`.

Nested objects and arrays call back into :func:`validate_fields` and
:func:`collect_checks` with a deeper path.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fieldcheck.db.pipeline import run_db_checks
from fieldcheck.errors import ValidationError
from fieldcheck.pool import check_list_pool
from fieldcheck.schema.context import ValidationContext, ValidationOptions
from fieldcheck.schema.paths import build_path
from fieldcheck.schema.rules import DBCheck
from fieldcheck.validate.base import FieldErrors, Schema, declared_checks, merge_errors

logger = logging.getLogger(__name__)


def validate_schema(
    data: Mapping[str, Any] | None,
    schema: Schema,
    options: ValidationOptions | None = None,
) -> ValidationError | None:
    """Validate ``data`` against ``schema``.

    Args:
        data: The root data object.  ``None`` is treated as ``{}``.
        schema: Field name -> validator.
        options: Validation-wide options.

    Returns:
        The aggregate error, or ``None`` when the data is valid.
    """
    options = options or ValidationOptions()
    root: Mapping[str, Any] = data if data is not None else {}
    ctx = ValidationContext(root=root, options=options)

    errors: FieldErrors = {}
    pool = check_list_pool()
    checks: list[DBCheck] = pool.acquire()
    try:
        for field, validator in schema.items():
            value = root.get(field)
            field_errors = validator.validate(ctx.child(field), value)
            merge_errors(errors, field_errors)
            if field_errors and options.abort_early:
                logger.debug("aborting early at field %r", field)
                return ValidationError(errors)
            checks.extend(declared_checks(validator, field, value))

        _run_lookups(ctx, options, checks, errors)
    finally:
        pool.release(checks)

    return ValidationError(errors) if errors else None


def validate_fields(ctx: ValidationContext, obj: Mapping[str, Any], schema: Schema) -> FieldErrors:
    """Validate each field of a nested object below ``ctx``."""
    errors: FieldErrors = {}
    for field, validator in schema.items():
        merge_errors(errors, validator.validate(ctx.child(field), obj.get(field)))
    return errors


def collect_checks(field_path: str, obj: Mapping[str, Any], schema: Schema) -> list[DBCheck]:
    """Checks declared by the validators of a nested object at ``field_path``."""
    checks: list[DBCheck] = []
    for field, validator in schema.items():
        checks.extend(declared_checks(validator, build_path(field_path, field), obj.get(field)))
    return checks


def _run_lookups(
    ctx: ValidationContext,
    options: ValidationOptions,
    checks: list[DBCheck],
    errors: FieldErrors,
) -> None:
    if not checks:
        return
    checker = options.checker
    if checker is None:
        logger.debug("no db checker configured; skipping %d declared check(s)", len(checks))
        return
    if errors and not options.run_db_checks_with_errors:
        logger.debug("structural errors found; skipping %d declared check(s)", len(checks))
        return

    db_errors = run_db_checks(
        ctx.token,
        checker,
        checks,
        root=ctx.root,
        include_where_values=options.group_by_where_values,
        max_workers=options.max_workers,
    )
    merge_errors(errors, db_errors)
