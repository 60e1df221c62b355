"""Collected checks -> batch groups -> lookups -> field errors.

The walker collects every declared check first and hands the flat list to
:func:`run_db_checks` once, so checks from all fields and array elements can
be batched together before any lookup is issued.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from fieldcheck.db.checker import DBChecker
from fieldcheck.db.executor import execute_groups
from fieldcheck.db.grouper import group_checks, release_groups
from fieldcheck.db.reconciler import reconcile
from fieldcheck.schema.context import CancelToken
from fieldcheck.schema.rules import DBCheck

logger = logging.getLogger(__name__)


def run_db_checks(
    ctx: CancelToken,
    checker: DBChecker,
    checks: Sequence[DBCheck],
    root: Mapping[str, Any] | None = None,
    include_where_values: bool = False,
    max_workers: int | None = None,
) -> dict[str, list[str]]:
    """Execute ``checks`` in batches and return field-keyed error messages.

    Args:
        ctx: Cancellation token for every lookup.
        checker: External lookup capability.
        checks: Every check collected during one validation call.
        root: Root data object for custom message functions.
        include_where_values: Batch on where-values as well as where shape.
        max_workers: Cap on concurrent lookups.

    Returns:
        Errors keyed by field path; empty when every check passed.
    """
    if not checks:
        return {}

    logger.debug("running %d collected db check(s)", len(checks))
    groups = group_checks(checks, include_where_values)
    try:
        results = execute_groups(ctx, checker, groups, max_workers)
        return reconcile(results, root)
    finally:
        release_groups(groups)
