"""String validator.

Rules run in a fixed order so a field's messages are reproducible:
presence, type, transforms, empty-string presence, then ``min``, ``max``,
``email``, ``url``, ``starts_with``, ``ends_with``, ``contains``, ``alpha``,
``alpha_numeric``, ``regex``, ``not_regex``, ``in_``, ``not_in``,
``doesnt_start_with``, ``doesnt_end_with``, ``includes``, ``uuid``, ``ip``,
``ipv4``, ``ipv6``, ``json``, ``hex_color``, ``ascii``, ``base64``, ``mac``,
``ulid``, ``alpha_dash``, ``digits``, ``same_as``, ``different_from`` and
finally ``custom``.
"""
from __future__ import annotations

import binascii
import ipaddress
import json
import re
from collections.abc import Callable
from typing import Any, Self
from urllib.parse import urlparse

from fieldcheck.cache import trusted_pattern, user_pattern
from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.messages import MessageArg
from fieldcheck.schema.paths import lookup_path
from fieldcheck.validate.base import DBRulesMixin, FieldErrors, FieldValidator

_EMAIL = trusted_pattern(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_ALPHA = trusted_pattern(r"^[a-zA-Z]+$")
_ALPHA_NUMERIC = trusted_pattern(r"^[a-zA-Z0-9]+$")
_ALPHA_DASH = trusted_pattern(r"^[a-zA-Z0-9_-]+$")
_UUID = trusted_pattern(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)
_HEX_COLOR = trusted_pattern(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_MAC = trusted_pattern(r"^([0-9A-Fa-f]{2}[:-]){5}([0-9A-Fa-f]{2})$")
_ULID = trusted_pattern(r"^[0-9A-HJKMNP-TV-Z]{26}$")

Transform = Callable[[str], str]


class StringValidator(DBRulesMixin, FieldValidator):
    """Validates ``str`` values with a fluent API."""

    def __init__(self) -> None:
        super().__init__()
        self._min: int | None = None
        self._max: int | None = None
        self._email = False
        self._url = False
        self._url_schemes: tuple[str, ...] = ()
        self._starts_with = ""
        self._ends_with = ""
        self._contains = ""
        self._alpha = False
        self._alpha_numeric = False
        self._regex: re.Pattern[str] | None = None
        self._regex_source = ""
        self._not_regex: re.Pattern[str] | None = None
        self._in: tuple[str, ...] = ()
        self._not_in: tuple[str, ...] = ()
        self._doesnt_start_with: tuple[str, ...] = ()
        self._doesnt_end_with: tuple[str, ...] = ()
        self._includes: tuple[str, ...] = ()
        self._flags: set[str] = set()
        self._digits: int | None = None
        self._same_as = ""
        self._different_from = ""
        self._transforms: list[Transform] = []

    # ------------------------------------------------------------------
    # Fluent API
    # ------------------------------------------------------------------

    def min(self, n: int, message: MessageArg | None = None) -> Self:
        self._min = n
        self._set_message("min", message)
        return self

    def max(self, n: int, message: MessageArg | None = None) -> Self:
        self._max = n
        self._set_message("max", message)
        return self

    def length(self, n: int, message: MessageArg | None = None) -> Self:
        """Exact length; ``message`` overrides both bounds."""
        self._min = self._max = n
        self._set_message("length", message)
        return self

    def email(self, message: MessageArg | None = None) -> Self:
        self._email = True
        self._set_message("email", message)
        return self

    def url(self, message: MessageArg | None = None, *, http: bool = False, https: bool = False) -> Self:
        """Absolute URL; ``http``/``https`` restrict the accepted schemes."""
        self._url = True
        self._url_schemes = tuple(s for s, on in (("http", http), ("https", https)) if on)
        self._set_message("url", message)
        return self

    def starts_with(self, prefix: str, message: MessageArg | None = None) -> Self:
        self._starts_with = prefix
        self._set_message("starts_with", message)
        return self

    def ends_with(self, suffix: str, message: MessageArg | None = None) -> Self:
        self._ends_with = suffix
        self._set_message("ends_with", message)
        return self

    def contains(self, substr: str, message: MessageArg | None = None) -> Self:
        self._contains = substr
        self._set_message("contains", message)
        return self

    def alpha(self, message: MessageArg | None = None) -> Self:
        self._alpha = True
        self._set_message("alpha", message)
        return self

    def alpha_numeric(self, message: MessageArg | None = None) -> Self:
        self._alpha_numeric = True
        self._set_message("alpha_numeric", message)
        return self

    def regex(self, pattern: str, message: MessageArg | None = None) -> Self:
        """Value must match ``pattern``.  An invalid pattern disables the rule."""
        self._regex = user_pattern(pattern)
        self._regex_source = pattern
        self._set_message("regex", message)
        return self

    def not_regex(self, pattern: str, message: MessageArg | None = None) -> Self:
        """Value must not match ``pattern``.  An invalid pattern disables the rule."""
        self._not_regex = user_pattern(pattern)
        self._set_message("not_regex", message)
        return self

    def in_(self, *values: str, message: MessageArg | None = None) -> Self:
        self._in = values
        self._set_message("in", message)
        return self

    def not_in(self, *values: str, message: MessageArg | None = None) -> Self:
        self._not_in = values
        self._set_message("not_in", message)
        return self

    def doesnt_start_with(self, *prefixes: str) -> Self:
        self._doesnt_start_with = prefixes
        return self

    def doesnt_end_with(self, *suffixes: str) -> Self:
        self._doesnt_end_with = suffixes
        return self

    def includes(self, *substrs: str) -> Self:
        """Value must contain every one of ``substrs``."""
        self._includes = substrs
        return self

    def uuid(self, message: MessageArg | None = None) -> Self:
        return self._flag("uuid", message)

    def ip(self, message: MessageArg | None = None) -> Self:
        return self._flag("ip", message)

    def ipv4(self, message: MessageArg | None = None) -> Self:
        return self._flag("ipv4", message)

    def ipv6(self, message: MessageArg | None = None) -> Self:
        return self._flag("ipv6", message)

    def json(self, message: MessageArg | None = None) -> Self:
        return self._flag("json", message)

    def hex_color(self, message: MessageArg | None = None) -> Self:
        return self._flag("hex_color", message)

    def ascii(self, message: MessageArg | None = None) -> Self:
        return self._flag("ascii", message)

    def base64(self, message: MessageArg | None = None) -> Self:
        return self._flag("base64", message)

    def mac(self, message: MessageArg | None = None) -> Self:
        return self._flag("mac", message)

    def ulid(self, message: MessageArg | None = None) -> Self:
        return self._flag("ulid", message)

    def alpha_dash(self, message: MessageArg | None = None) -> Self:
        return self._flag("alpha_dash", message)

    def digits(self, length: int, message: MessageArg | None = None) -> Self:
        """Exactly ``length`` ASCII digits."""
        self._digits = length
        self._set_message("digits", message)
        return self

    def same_as(self, field_path: str) -> Self:
        self._same_as = field_path
        return self

    def different_from(self, field_path: str) -> Self:
        self._different_from = field_path
        return self

    def trim(self) -> Self:
        return self.transform(str.strip)

    def lowercase(self) -> Self:
        return self.transform(str.lower)

    def uppercase(self) -> Self:
        return self.transform(str.upper)

    def transform(self, fn: Transform) -> Self:
        """Apply ``fn`` to the value before the rules run."""
        self._transforms.append(fn)
        return self

    def _flag(self, name: str, message: MessageArg | None) -> Self:
        self._flags.add(name)
        self._set_message(name, message)
        return self

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        value = self._with_default(value)
        done = self._presence(ctx, value)
        if done is not None:
            return done

        name = ctx.field_name
        mctx = self._message_context(ctx, value)
        if not isinstance(value, str):
            return {ctx.full_path: [self._msg("type", f"{name} must be a string", mctx)]}

        text = value
        for fn in self._transforms:
            text = fn(text)

        if text == "":
            if self._is_required(ctx):
                return self._required_error(ctx, value)
            return {}

        errors: FieldErrors = {}

        def add(rule: str, default: str, param: Any = None) -> None:
            self._add(errors, ctx, mctx, rule, default, param)

        exact = self._min is not None and self._min == self._max and "length" in self._messages
        if self._min is not None and len(text) < self._min:
            add("length" if exact else "min", f"{name} must be at least {self._min} characters", self._min)
        if self._max is not None and len(text) > self._max:
            add("length" if exact else "max", f"{name} must be at most {self._max} characters", self._max)

        if self._email and not _EMAIL.match(text):
            add("email", f"{name} must be a valid email")
        if self._url:
            self._check_url(text, name, add)

        if self._starts_with and not text.startswith(self._starts_with):
            add("starts_with", f"{name} must start with {self._starts_with}", self._starts_with)
        if self._ends_with and not text.endswith(self._ends_with):
            add("ends_with", f"{name} must end with {self._ends_with}", self._ends_with)
        if self._contains and self._contains not in text:
            add("contains", f"{name} must contain {self._contains}", self._contains)
        if self._alpha and not _ALPHA.match(text):
            add("alpha", f"{name} must contain only letters")
        if self._alpha_numeric and not _ALPHA_NUMERIC.match(text):
            add("alpha_numeric", f"{name} must contain only letters and numbers")

        if self._regex is not None and not self._regex.search(text):
            add("regex", f"{name} format is invalid", self._regex_source)
        if self._not_regex is not None and self._not_regex.search(text):
            add("not_regex", f"{name} format is invalid")

        if self._in and text not in self._in:
            add("in", f"{name} must be one of: {', '.join(self._in)}", list(self._in))
        if self._not_in and text in self._not_in:
            add("not_in", f"{name} must not be one of: {', '.join(self._not_in)}", list(self._not_in))

        for prefix in self._doesnt_start_with:
            if text.startswith(prefix):
                add("doesnt_start_with", f"{name} must not start with {prefix}", list(self._doesnt_start_with))
                break
        for suffix in self._doesnt_end_with:
            if text.endswith(suffix):
                add("doesnt_end_with", f"{name} must not end with {suffix}", list(self._doesnt_end_with))
                break
        for substr in self._includes:
            if substr not in text:
                add("includes", f"{name} must contain {substr}", list(self._includes))

        for flag, check, default in _FORMAT_CHECKS:
            if flag in self._flags and not check(text):
                add(flag, default.format(name=name))

        if self._digits is not None and not _is_digits(text, self._digits):
            add("digits", f"{name} must be exactly {self._digits} digits", self._digits)

        if self._same_as:
            other = lookup_path(ctx.root, self._same_as)
            if other.exists and isinstance(other.value, str) and text != other.value:
                add("same_as", f"{name} must match {self._same_as}", self._same_as)
        if self._different_from:
            other = lookup_path(ctx.root, self._different_from)
            if other.exists and isinstance(other.value, str) and text == other.value:
                add("different_from", f"{name} must be different from {self._different_from}", self._different_from)

        self._run_custom(errors, ctx, mctx, text)
        return errors

    def _check_url(self, text: str, name: str, add: Callable[..., None]) -> None:
        parsed = urlparse(text)
        if not parsed.scheme or not parsed.netloc:
            add("url", f"{name} must be a valid URL")
            return
        if not self._url_schemes or parsed.scheme in self._url_schemes:
            return
        if self._url_schemes == ("http",):
            add("url", f"{name} must be an HTTP URL")
        elif self._url_schemes == ("https",):
            add("url", f"{name} must be an HTTPS URL")
        else:
            add("url", f"{name} must be an HTTP or HTTPS URL")

    def _check_value(self, value: Any) -> Any:
        # Look up the same text the rules validated.
        if not isinstance(value, str):
            return None
        for fn in self._transforms:
            value = fn(value)
        return value if value != "" else None


def String() -> StringValidator:
    """Create a string validator."""
    return StringValidator()


# ---------------------------------------------------------------------------
# Format predicates
# ---------------------------------------------------------------------------


def _is_ip(text: str) -> bool:
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def _is_ipv4(text: str) -> bool:
    try:
        ipaddress.IPv4Address(text)
    except ValueError:
        return False
    return True


def _is_ipv6(text: str) -> bool:
    try:
        addr = ipaddress.IPv6Address(text)
    except ValueError:
        return False
    return addr.ipv4_mapped is None


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def _is_base64(text: str) -> bool:
    try:
        binascii.a2b_base64(text.encode("ascii"), strict_mode=True)
    except (binascii.Error, UnicodeEncodeError):
        return False
    return True


def _is_digits(text: str, length: int) -> bool:
    return len(text) == length and all("0" <= ch <= "9" for ch in text)


_FORMAT_CHECKS: tuple[tuple[str, Callable[[str], bool], str], ...] = (
    ("uuid", lambda s: bool(_UUID.match(s)), "{name} must be a valid UUID"),
    ("ip", _is_ip, "{name} must be a valid IP address"),
    ("ipv4", _is_ipv4, "{name} must be a valid IPv4 address"),
    ("ipv6", _is_ipv6, "{name} must be a valid IPv6 address"),
    ("json", _is_json, "{name} must be valid JSON"),
    ("hex_color", lambda s: bool(_HEX_COLOR.match(s)), "{name} must be a valid hex color"),
    ("ascii", str.isascii, "{name} must contain only ASCII characters"),
    ("base64", _is_base64, "{name} must be valid base64"),
    ("mac", lambda s: bool(_MAC.match(s)), "{name} must be a valid MAC address"),
    ("ulid", lambda s: len(s) == 26 and bool(_ULID.match(s.upper())), "{name} must be a valid ULID"),
    (
        "alpha_dash",
        lambda s: bool(_ALPHA_DASH.match(s)),
        "{name} must contain only letters, numbers, dashes, and underscores",
    ),
)
