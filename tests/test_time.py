"""Unit tests for TimeValidator."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fieldcheck import Time
from fieldcheck.schema.context import ValidationContext

UTC = timezone.utc
JAN = datetime(2024, 1, 1, tzinfo=UTC)
DEC = datetime(2024, 12, 31, tzinfo=UTC)


def run(validator, value, root=None):
    return validator.validate(ValidationContext(root=root or {}).child("at"), value)


def test_iso_strings_and_datetimes():
    assert run(Time(), "2024-06-01T10:00:00+00:00") == {}
    assert run(Time(), datetime(2024, 6, 1)) == {}


def test_bad_values():
    assert run(Time(), "June 1st") == {"at": ["at must be a valid time format"]}
    assert run(Time(), 1717236000) == {"at": ["at must be a time value"]}


def test_empty_string():
    assert run(Time(), "") == {}
    assert run(Time().required(), "") == {"at": ["at is required"]}


def test_custom_format():
    v = Time().format("%d/%m/%Y")
    assert run(v, "01/06/2024") == {}
    assert run(v, "2024-06-01") == {"at": ["at must be a valid time format"]}


def test_after_and_before():
    v = Time().after(JAN).before(DEC)
    assert run(v, "2024-06-01T00:00:00Z") == {}
    assert run(v, "2023-06-01T00:00:00Z") == {"at": [f"at must be after {JAN.isoformat()}"]}
    assert run(v, DEC) == {"at": [f"at must be before {DEC.isoformat()}"]}


def test_naive_values_use_configured_timezone():
    plus_two = timezone(timedelta(hours=2))
    v = Time().timezone(plus_two).after(datetime(2024, 1, 1, 11, 0, tzinfo=UTC))
    assert run(v, "2024-01-01T12:30:00") == {"at": ["at must be after 2024-01-01T11:00:00+00:00"]}
    assert run(v, "2024-01-01T13:30:00") == {}


def test_between_is_inclusive():
    v = Time().between(JAN, DEC)
    assert run(v, JAN) == {}
    assert run(v, DEC) == {}
    assert run(v, DEC + timedelta(seconds=1)) == {
        "at": [f"at must be between {JAN.isoformat()} and {DEC.isoformat()}"]
    }


def test_relative_to_now():
    past = datetime.now(UTC) - timedelta(days=1)
    future = datetime.now(UTC) + timedelta(days=1)
    assert run(Time().after_now(), future) == {}
    assert run(Time().after_now(), past) == {"at": ["at must be after now"]}
    assert run(Time().before_now(), past) == {}
    assert run(Time().before_now(), future) == {"at": ["at must be before now"]}


def test_cross_field():
    root = {"starts_at": "2024-03-01T00:00:00Z", "ends_at": "2024-03-10T00:00:00Z"}
    ends = Time().after_field("starts_at")
    assert run(ends, root["ends_at"], root) == {}
    assert run(ends, "2024-02-01T00:00:00Z", root) == {"at": ["at must be after starts_at"]}
    starts = Time().before_field("ends_at")
    assert run(starts, "2024-04-01T00:00:00Z", root) == {"at": ["at must be before ends_at"]}


def test_custom_receives_parsed_datetime():
    seen = []
    run(Time().custom(lambda value, lookup: seen.append(value)), "2024-06-01T00:00:00Z")
    assert seen == [datetime(2024, 6, 1, tzinfo=UTC)]
