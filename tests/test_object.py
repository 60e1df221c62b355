"""Unit tests for ObjectValidator."""
from __future__ import annotations

import fieldcheck
from fieldcheck import Int, Object, String
from fieldcheck.schema.context import ValidationContext

ADDRESS = Object({
    "street": String().required(),
    "zip": String().digits(5),
    "country_id": Int().exists("countries", "id"),
})


def run(validator, value):
    return validator.validate(ValidationContext(root={}).child("addr"), value)


def test_nested_errors_use_dotted_paths():
    assert run(ADDRESS, {"zip": "12"}) == {
        "addr.street": ["street is required"],
        "addr.zip": ["zip must be exactly 5 digits"],
    }


def test_type():
    assert run(ADDRESS, ["x"]) == {"addr": ["addr must be an object"]}


def test_missing_optional_object():
    assert run(ADDRESS, None) == {}
    assert run(Object({"a": String()}).required(), None) == {"addr": ["addr is required"]}


def test_strict_reports_unknown_keys():
    v = Object({"a": String()}).strict()
    assert run(v, {"a": "x", "b": 1, "c": 2}) == {"addr": ["unknown field: b", "unknown field: c"]}
    assert run(v.passthrough(), {"a": "x", "b": 1}) == {}


def test_shape_replaces_schema():
    v = Object().shape({"n": Int().required()})
    assert run(v, {}) == {"addr.n": ["n is required"]}


def test_pick_and_omit_leave_original_alone():
    picked = ADDRESS.pick("zip")
    assert run(picked, {"zip": "12345"}) == {}
    omitted = ADDRESS.omit("street")
    assert run(omitted, {}) == {}
    assert "addr.street" in run(ADDRESS, {})


def test_partial_makes_everything_optional():
    v = Object({"a": String().required().min(3)}).required().partial()
    assert run(v, None) == {}
    assert run(v, {}) == {}
    assert run(v, {"a": "xy"}) == {"addr.a": ["a must be at least 3 characters"]}


def test_extend_and_merge():
    base = Object({"a": String()})
    extended = base.extend({"b": Int().required()})
    assert run(extended, {}) == {"addr.b": ["b is required"]}
    assert run(base, {}) == {}

    merged = base.merge(Object({"a": Int()}).strict())
    assert run(merged, {"a": "x", "z": 1}) == {
        "addr": ["unknown field: z"],
        "addr.a": ["a must be a number"],
    }


def test_custom_sees_whole_object():
    def check(value, lookup):
        if value.get("start", 0) > value.get("end", 0):
            raise ValueError("start must come before end")

    v = Object({"start": Int(), "end": Int()}).custom(check)
    assert run(v, {"start": 5, "end": 1}) == {"addr": ["start must come before end"]}


def test_nested_checks_are_declared_with_paths():
    checks = ADDRESS.declare_checks("addr", {"country_id": 7, "street": "x"})
    assert [(c.field, c.value) for c in checks] == [("addr.country_id", 7)]
    assert ADDRESS.declare_checks("addr", "not an object") == []


def test_nested_lookup_through_validate(checker):
    schema = {"user": Object({"role_id": Int().exists("roles", "id")})}
    err = fieldcheck.validate({"user": {"role_id": 5}}, schema, db_checker=checker)
    assert err.errors == {"user.role_id": ["user.role_id does not exist"]}
