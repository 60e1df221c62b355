"""fieldcheck schema layer: paths, contexts, messages and lookup rules."""
from fieldcheck.schema.context import CancelToken, ValidationContext, ValidationOptions
from fieldcheck.schema.messages import MessageArg, MessageContext, resolve_message
from fieldcheck.schema.paths import DataAccessor, LookupResult, build_path, extract_index, lookup_path
from fieldcheck.schema.rules import (
    DBCheck,
    ExistsRule,
    UniqueRule,
    WhereClause,
    where,
    where_eq,
    where_not,
)

__all__ = [
    "CancelToken",
    "ValidationContext",
    "ValidationOptions",
    "MessageArg",
    "MessageContext",
    "resolve_message",
    "DataAccessor",
    "LookupResult",
    "build_path",
    "extract_index",
    "lookup_path",
    "DBCheck",
    "ExistsRule",
    "UniqueRule",
    "WhereClause",
    "where",
    "where_eq",
    "where_not",
]
