"""fieldcheck – Schema validation for dynamic data with batched database checks.

Validate first, query once.

Public API
----------
``validate``
    Walk a schema over a dict, then run every declared Exists/Unique check
    in as few lookups as possible.  Returns ``ValidationError`` or ``None``.

``parse`` / ``safe_parse``
    Same as ``validate`` but raise the error, or return ``(data, error)``.

``validate_with_db``
    Shorthand for ``validate`` with a checker and a cancellation token.

Building schemas
----------------
::

    import fieldcheck as fc

    schema = {
        "email": fc.String().required().email().unique("users", "email"),
        "role_id": fc.Int().required().exists("roles", "id"),
        "tags": fc.Array(fc.String().max(20)).max(5),
    }
    err = fc.validate(payload, schema, db_checker=fc.SQLAlchemyChecker(engine))
    if err is not None:
        return err.to_error_response()

Extensibility
-------------
Any object with ``validate(ctx, value)`` can be used in a schema; adding
``declare_checks(field_path, value)`` lets it take part in batched lookups.
Any object with ``check_exists(ctx, table, column, values, where)`` can be
used as ``db_checker``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fieldcheck.cache import PatternCache, pattern_cache, trusted_pattern
from fieldcheck.db.adapters import DBAPIChecker, SQLAlchemyChecker, build_exists_query
from fieldcheck.db.checker import DBChecker, FuncChecker
from fieldcheck.errors import (
    CancelledError,
    CheckerError,
    DeadlineExceededError,
    FieldcheckError,
    NoConnectionError,
    PatternCompileError,
    ValidationError,
)
from fieldcheck.pool import configure_pools
from fieldcheck.schema.context import CancelToken, ValidationContext, ValidationOptions
from fieldcheck.schema.messages import MessageContext
from fieldcheck.schema.paths import DataAccessor, LookupResult, lookup_path
from fieldcheck.schema.rules import DBCheck, WhereClause, where, where_eq, where_not
from fieldcheck.validate.array import Array, ArrayValidator
from fieldcheck.validate.base import FieldValidator, Schema, Validator
from fieldcheck.validate.boolean import Bool, BoolValidator
from fieldcheck.validate.composite import (
    AnyValidator,
    AnyValue,
    Enum,
    EnumValidator,
    Literal,
    LiteralValidator,
    Optional,
    OptionalValidator,
    Union,
    UnionValidator,
)
from fieldcheck.validate.file import File, FileValidator, ImageDimensions, UploadedFile
from fieldcheck.validate.number import Float, Int, NumberValidator
from fieldcheck.validate.object import Object, ObjectValidator
from fieldcheck.validate.string import String, StringValidator
from fieldcheck.validate.time import Time, TimeValidator
from fieldcheck.validate.walker import validate_schema

__all__ = [
    # Entry points
    "validate",
    "parse",
    "safe_parse",
    "validate_with_db",
    "validate_schema",
    # Options and context
    "ValidationOptions",
    "ValidationContext",
    "CancelToken",
    "MessageContext",
    "DataAccessor",
    "LookupResult",
    "lookup_path",
    # Validators
    "Validator",
    "FieldValidator",
    "Schema",
    "String",
    "StringValidator",
    "Int",
    "Float",
    "NumberValidator",
    "Bool",
    "BoolValidator",
    "Object",
    "ObjectValidator",
    "Array",
    "ArrayValidator",
    "File",
    "FileValidator",
    "UploadedFile",
    "ImageDimensions",
    "Time",
    "TimeValidator",
    "Enum",
    "EnumValidator",
    "Literal",
    "LiteralValidator",
    "Union",
    "UnionValidator",
    "Optional",
    "OptionalValidator",
    "AnyValue",
    "AnyValidator",
    # Database checks
    "DBCheck",
    "DBChecker",
    "FuncChecker",
    "DBAPIChecker",
    "SQLAlchemyChecker",
    "build_exists_query",
    "WhereClause",
    "where",
    "where_eq",
    "where_not",
    # Caches and pools
    "PatternCache",
    "pattern_cache",
    "trusted_pattern",
    "configure_pools",
    # Errors
    "FieldcheckError",
    "ValidationError",
    "PatternCompileError",
    "CheckerError",
    "NoConnectionError",
    "CancelledError",
    "DeadlineExceededError",
]


def _options(options: ValidationOptions | None, overrides: dict[str, Any]) -> ValidationOptions:
    if options is None:
        return ValidationOptions(**overrides)
    if overrides:
        return ValidationOptions(**{**dict(options), **overrides})
    return options


def validate(
    data: Mapping[str, Any] | None,
    schema: Schema,
    options: ValidationOptions | None = None,
    **kwargs: Any,
) -> ValidationError | None:
    """Validate ``data`` against ``schema``.

    Options may be given as a ``ValidationOptions`` model, as keyword
    arguments, or both (keywords win)::

        err = fieldcheck.validate(payload, schema, abort_early=True)

    Args:
        data: The object to validate.  ``None`` is treated as ``{}``.
        schema: Field name -> validator.
        options: Validation-wide options.
        **kwargs: Any ``ValidationOptions`` field.

    Returns:
        ``ValidationError`` with every message, or ``None`` when valid.

    Raises:
        pydantic.ValidationError: If a keyword is not a known option or has
            the wrong type.
    """
    return validate_schema(data, schema, _options(options, kwargs))


def parse(
    data: Mapping[str, Any] | None,
    schema: Schema,
    options: ValidationOptions | None = None,
    **kwargs: Any,
) -> Mapping[str, Any]:
    """Validate and return ``data`` unchanged.

    Raises:
        ValidationError: If any field failed.
    """
    err = validate(data, schema, options, **kwargs)
    if err is not None:
        raise err
    return data if data is not None else {}


def safe_parse(
    data: Mapping[str, Any] | None,
    schema: Schema,
    options: ValidationOptions | None = None,
    **kwargs: Any,
) -> tuple[Mapping[str, Any] | None, ValidationError | None]:
    """Like :func:`parse` but return ``(data, None)`` or ``(None, error)``."""
    err = validate(data, schema, options, **kwargs)
    if err is not None:
        return None, err
    return (data if data is not None else {}), None


def validate_with_db(
    ctx: CancelToken | None,
    data: Mapping[str, Any] | None,
    schema: Schema,
    checker: DBChecker,
    **kwargs: Any,
) -> ValidationError | None:
    """Validate with ``checker`` answering Exists/Unique lookups.

    Args:
        ctx: Cancellation token passed to every lookup; ``None`` for none.
        data: The object to validate.
        schema: Field name -> validator.
        checker: External lookup capability.
        **kwargs: Further ``ValidationOptions`` fields.
    """
    return validate(data, schema, db_checker=checker, cancel=ctx, **kwargs)
