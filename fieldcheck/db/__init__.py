"""External existence lookups: grouping, execution, reconciliation, adapters."""
from fieldcheck.db.adapters import DBAPIChecker, SQLAlchemyChecker, build_exists_query
from fieldcheck.db.checker import DBChecker, FuncChecker
from fieldcheck.db.pipeline import run_db_checks

__all__ = [
    "DBChecker",
    "FuncChecker",
    "DBAPIChecker",
    "SQLAlchemyChecker",
    "build_exists_query",
    "run_db_checks",
]
