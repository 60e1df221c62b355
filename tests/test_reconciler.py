"""Unit tests for mapping lookup results back onto checks."""
from __future__ import annotations

from decimal import Decimal

import pytest

from fieldcheck.db.executor import GroupResult
from fieldcheck.db.grouper import BatchGroup
from fieldcheck.db.reconciler import reconcile, scalar_key, scalars_equal
from fieldcheck.schema.rules import ExistsRule, UniqueRule, exists_check, unique_check


def _result(checks, membership=None, error=None) -> GroupResult:
    group = BatchGroup(table="users", column="email")
    for check in checks:
        group.add(check)
    return GroupResult(group, membership or {}, error)


def _unique(field, value, ignore=None, message=None):
    return unique_check(field, value, UniqueRule(table="users", column="email", ignore=ignore), message)


def _exists(field, value, message=None):
    return exists_check(field, value, ExistsRule(table="users", column="email"), message)


class TestScalarKey:
    @pytest.mark.parametrize(
        "a, b",
        [
            (1, 1.0),
            (1, Decimal("1")),
            (Decimal("2.50"), 2.5),
            ("abc", b"abc"),
            (None, None),
        ],
    )
    def test_equal(self, a, b):
        assert scalars_equal(a, b)

    @pytest.mark.parametrize(
        "a, b",
        [
            ("1", 1),
            (True, 1),
            (False, 0),
            (1.5, 1),
            (None, ""),
        ],
    )
    def test_not_equal(self, a, b):
        assert not scalars_equal(a, b)

    def test_unhashable_values_still_get_a_key(self):
        assert scalar_key([1, 2]) == scalar_key([1, 2])

    def test_undecodable_bytes(self):
        assert scalar_key(b"\xff") == ("bytes", b"\xff")


class TestExists:
    def test_missing_value_is_an_error(self):
        errors = reconcile([_result([_exists("owner", "a@x.com")])])
        assert errors == {"owner": ["owner does not exist"]}

    def test_present_value_passes(self):
        errors = reconcile([_result([_exists("owner", "a@x.com")], {"a@x.com": True})])
        assert errors == {}

    def test_false_membership_counts_as_missing(self):
        errors = reconcile([_result([_exists("owner", "a@x.com")], {"a@x.com": False})])
        assert errors == {"owner": ["owner does not exist"]}

    def test_cross_type_membership(self):
        checks = [_exists("a", 1.0), _exists("b", "2"), _exists("c", True)]
        errors = reconcile([_result(checks, {1: True, 2: True, 1.0: True})])
        assert list(errors) == ["b", "c"]


class TestUnique:
    def test_truth_table(self):
        checks = [
            _unique("taken", "john@x.com"),
            _unique("own", "john@x.com", ignore="john@x.com"),
            _unique("other_ignore", "john@x.com", ignore="jane@x.com"),
            _unique("free", "new@x.com"),
        ]
        errors = reconcile([_result(checks, {"john@x.com": True})])
        assert errors == {
            "taken": ["taken already exists"],
            "other_ignore": ["other_ignore already exists"],
        }

    def test_ignore_uses_canonical_equality(self):
        check = unique_check("id", 5, UniqueRule(table="users", column="id", ignore=5.0))
        assert reconcile([_result([check], {5: True})]) == {}


class TestMessages:
    def test_group_error_message(self):
        checks = [_exists("a", 1), _unique("b", 2)]
        errors = reconcile([_result(checks, error=RuntimeError("boom"))])
        assert errors == {"a": ["database error: boom"], "b": ["database error: boom"]}

    def test_custom_string(self):
        errors = reconcile([_result([_unique("email", "john@x.com", message="email is taken")], {"john@x.com": True})])
        assert errors == {"email": ["email is taken"]}

    def test_custom_function_gets_context(self):
        seen = []

        def message(m):
            seen.append(m)
            return f"{m.field} #{m.index} ({m.value}) missing for {m.data.get('owner').as_str()}"

        check = _exists("items.2.sku", "X-1", message)
        errors = reconcile([_result([check])], root={"owner": "ada"})
        assert errors == {"items.2.sku": ["sku #2 (X-1) missing for ada"]}
        assert seen[0].path == "items.2.sku"
        assert seen[0].rule == "exists"
        assert seen[0].param == "users"

    def test_results_from_several_groups_merge(self):
        first = _result([_exists("a", 1)])
        second = _result([_exists("a", 2)])
        errors = reconcile([first, second])
        assert errors == {"a": ["a does not exist", "a does not exist"]}
