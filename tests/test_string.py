"""Unit tests for StringValidator."""
from __future__ import annotations

import pytest

import fieldcheck
from fieldcheck import String, where_eq
from fieldcheck.schema.context import ValidationContext


def run(validator, value, root=None):
    root = root if root is not None else {}
    return validator.validate(ValidationContext(root=root).child("f"), value)


def messages(validator, value, root=None):
    return run(validator, value, root).get("f", [])


class TestPresenceAndType:
    def test_missing_optional(self):
        assert run(String().min(3), None) == {}

    def test_missing_required(self):
        assert messages(String().required(), None) == ["f is required"]

    def test_empty_string_is_missing(self):
        assert messages(String().required(), "") == ["f is required"]
        assert run(String().min(3), "") == {}

    def test_trim_then_required(self):
        assert messages(String().trim().required(), "   ") == ["f is required"]

    def test_not_a_string(self):
        assert messages(String(), 5) == ["f must be a string"]

    def test_custom_required_message(self):
        assert messages(String().required(lambda m: f"{m.field}!"), None) == ["f!"]


class TestLength:
    def test_bounds(self):
        v = String().min(2).max(4)
        assert messages(v, "a") == ["f must be at least 2 characters"]
        assert messages(v, "abcde") == ["f must be at most 4 characters"]
        assert run(v, "abc") == {}

    def test_length_message_covers_both_bounds(self):
        v = String().length(3, "exactly three")
        assert messages(v, "ab") == ["exactly three"]
        assert messages(v, "abcd") == ["exactly three"]

    def test_transforms_apply_before_rules(self):
        v = String().trim().lowercase().in_("yes", "no")
        assert run(v, "  YES ") == {}


@pytest.mark.parametrize(
    "validator, good, bad, message",
    [
        (String().email(), "a.b@example.com", "a@b", "f must be a valid email"),
        (String().url(), "https://x.io/a", "x.io", "f must be a valid URL"),
        (String().url(https=True), "https://x.io", "http://x.io", "f must be an HTTPS URL"),
        (String().url(http=True), "http://x.io", "ftp://x.io", "f must be an HTTP URL"),
        (String().starts_with("ab"), "abc", "cab", "f must start with ab"),
        (String().ends_with("yz"), "xyz", "yzx", "f must end with yz"),
        (String().contains("@"), "a@b", "ab", "f must contain @"),
        (String().alpha(), "abc", "ab1", "f must contain only letters"),
        (String().alpha_numeric(), "ab1", "ab-1", "f must contain only letters and numbers"),
        (String().alpha_dash(), "a_b-1", "a b", "f must contain only letters, numbers, dashes, and underscores"),
        (String().regex(r"\d{3}"), "ab123", "ab12", "f format is invalid"),
        (String().not_regex(r"\s"), "ab", "a b", "f format is invalid"),
        (String().in_("a", "b"), "a", "c", "f must be one of: a, b"),
        (String().not_in("root", "admin"), "ada", "root", "f must not be one of: root, admin"),
        (String().doesnt_start_with("_", "-"), "a_", "-a", "f must not start with -"),
        (String().doesnt_end_with(".tmp"), "a.txt", "a.tmp", "f must not end with .tmp"),
        (String().uuid(), "123e4567-e89b-12d3-a456-426614174000", "123e4567", "f must be a valid UUID"),
        (String().ip(), "::1", "999.1.1.1", "f must be a valid IP address"),
        (String().ipv4(), "10.0.0.1", "::1", "f must be a valid IPv4 address"),
        (String().ipv6(), "fe80::1", "10.0.0.1", "f must be a valid IPv6 address"),
        (String().json(), '{"a": [1]}', "{a:1}", "f must be valid JSON"),
        (String().hex_color(), "#a1B", "#abcd", "f must be a valid hex color"),
        (String().ascii(), "plain", "café", "f must contain only ASCII characters"),
        (String().base64(), "aGVsbG8=", "hello!", "f must be valid base64"),
        (String().mac(), "00:1A:2b:3C:4d:5E", "00:1A:2b", "f must be a valid MAC address"),
        (String().ulid(), "01ARZ3NDEKTSV4RRFFQ69G5FAV", "01ARZ3NDEKTSV4RRFFQ69G5FAU!", "f must be a valid ULID"),
        (String().digits(4), "0042", "42", "f must be exactly 4 digits"),
    ],
)
def test_rules(validator, good, bad, message):
    assert run(validator, good) == {}
    assert messages(validator, bad) == [message]


def test_ipv6_rejects_ipv4_mapped():
    assert messages(String().ipv6(), "::ffff:10.0.0.1") == ["f must be a valid IPv6 address"]


def test_includes_reports_each_missing_part():
    assert messages(String().includes("a", "b", "c"), "a") == ["f must contain b", "f must contain c"]


def test_invalid_user_regex_is_inert():
    assert run(String().regex("[unclosed"), "anything") == {}


def test_rule_order_is_fixed():
    v = String().min(10).email().starts_with("x").alpha()
    assert messages(v, "ab@1") == [
        "f must be at least 10 characters",
        "f must be a valid email",
        "f must start with x",
        "f must contain only letters",
    ]


class TestCrossField:
    def test_same_as(self):
        root = {"password": "s3cret"}
        assert run(String().same_as("password"), "s3cret", root) == {}
        assert messages(String().same_as("password"), "other", root) == ["f must match password"]

    def test_different_from(self):
        root = {"old": "pw"}
        assert messages(String().different_from("old"), "pw", root) == ["f must be different from old"]

    def test_missing_other_field_is_not_an_error(self):
        assert run(String().same_as("nope"), "x") == {}


class TestDeclaredChecks:
    def test_exists_and_unique(self):
        v = String().exists("users", "email").unique("users", "email", "me@x.com", where_eq("tenant", "a"))
        checks = v.declare_checks("email", "new@x.com")
        assert [c.is_unique for c in checks] == [False, True]
        assert checks[1].ignore == "me@x.com"
        assert checks[1].rule.where == (where_eq("tenant", "a"),)

    def test_no_rules_no_checks(self):
        assert String().declare_checks("f", "x") == []

    @pytest.mark.parametrize("value", [None, "", 5])
    def test_ineligible_values(self, value):
        assert String().exists("t", "c").declare_checks("f", value) == []

    def test_custom_messages_travel_with_checks(self):
        checks = String().exists("t", "c", message="gone").declare_checks("f", "x")
        assert checks[0].message == "gone"

    def test_lookup_uses_transformed_text(self):
        v = String().trim().lowercase().email().exists("users", "email")
        checks = v.declare_checks("email", "  John@X.com ")
        assert [c.value for c in checks] == ["john@x.com"]

    def test_blank_after_trim_is_not_looked_up(self):
        assert String().trim().exists("t", "c").declare_checks("f", "   ") == []

    def test_transformed_value_found_in_store(self, checker):
        schema = {"email": String().trim().lowercase().email().exists("users", "email")}
        assert fieldcheck.validate({"email": "  John@X.com "}, schema, db_checker=checker) is None
        assert checker.calls[0].values == ("john@x.com",)
