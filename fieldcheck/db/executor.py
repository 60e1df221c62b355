"""Dispatch of batch groups to the external checker.

One lookup is issued per group.  A single group is looked up inline on the
calling thread; several groups are looked up concurrently, one task each, and
the results are fanned in once every task has finished.  Completion order
never matters: each :class:`GroupResult` is bound to its group.

Failures are contained per group: a raising checker or a cancelled token is
recorded as that group's error and sibling groups are unaffected.  Lookups are
never retried.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from fieldcheck.db.checker import DBChecker
from fieldcheck.db.grouper import BatchGroup
from fieldcheck.schema.context import CancelToken

logger = logging.getLogger(__name__)


@dataclass
class GroupResult:
    """Outcome of one group's lookup.

    Attributes:
        group: The group that was looked up.
        membership: Membership map returned by the checker (empty on error).
        error: The failure, if any.
    """

    group: BatchGroup
    membership: Mapping[Any, bool]
    error: BaseException | None = None


def execute_groups(
    ctx: CancelToken,
    checker: DBChecker,
    groups: Sequence[BatchGroup],
    max_workers: int | None = None,
) -> list[GroupResult]:
    """Look up every group and return one result per group.

    Args:
        ctx: Cancellation token, checked before each dispatch and passed on
            to the checker.
        checker: The external lookup capability.
        groups: Groups produced by :func:`~fieldcheck.db.grouper.group_checks`.
        max_workers: Cap on concurrent lookups; defaults to one per group.

    Returns:
        Results in the same order as ``groups``.
    """
    if not groups:
        return []

    if len(groups) == 1:
        logger.debug("executing 1 batch group inline")
        return [_run_group(ctx, checker, groups[0])]

    workers = min(len(groups), max_workers) if max_workers else len(groups)
    logger.debug("executing %d batch groups on %d worker(s)", len(groups), workers)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fieldcheck-db") as pool:
        futures = [pool.submit(_run_group, ctx, checker, group) for group in groups]
        return [future.result() for future in futures]


def _run_group(ctx: CancelToken, checker: DBChecker, group: BatchGroup) -> GroupResult:
    cancelled = ctx.error()
    if cancelled is not None:
        return GroupResult(group, {}, cancelled)
    try:
        membership = checker.check_exists(ctx, group.table, group.column, list(group.values), list(group.where))
    except Exception as exc:
        logger.warning("lookup on %s.%s failed: %s", group.table, group.column, exc)
        return GroupResult(group, {}, exc)
    return GroupResult(group, membership or {})
