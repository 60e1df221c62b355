"""Date/time validator.

Values are :class:`~datetime.datetime` objects or strings.  Strings are
parsed as ISO-8601 unless a ``strptime`` format is configured.  Naive
values are read in the configured timezone (UTC by default) so they can be
compared with aware bounds.
"""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Any, Self

from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.paths import lookup_path
from fieldcheck.validate.base import FieldErrors, FieldValidator


class TimeValidator(FieldValidator):
    def __init__(self) -> None:
        super().__init__()
        self._format: str | None = None
        self._tz: tzinfo = timezone.utc
        self._after: datetime | None = None
        self._before: datetime | None = None
        self._after_now = False
        self._before_now = False
        self._after_field = ""
        self._before_field = ""
        self._between: tuple[datetime, datetime] | None = None

    def format(self, fmt: str) -> Self:
        """Parse strings with ``datetime.strptime(value, fmt)``."""
        self._format = fmt
        return self

    def timezone(self, tz: tzinfo) -> Self:
        """Timezone assumed for naive values."""
        self._tz = tz
        return self

    def after(self, moment: datetime) -> Self:
        self._after = moment
        return self

    def before(self, moment: datetime) -> Self:
        self._before = moment
        return self

    def after_now(self) -> Self:
        self._after_now = True
        return self

    def before_now(self) -> Self:
        self._before_now = True
        return self

    def after_field(self, field_path: str) -> Self:
        self._after_field = field_path
        return self

    def before_field(self, field_path: str) -> Self:
        self._before_field = field_path
        return self

    def between(self, start: datetime, end: datetime) -> Self:
        """Inclusive range."""
        self._between = (start, end)
        return self

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        value = self._with_default(value)
        done = self._presence(ctx, value)
        if done is not None:
            return done

        name = ctx.field_name
        mctx = self._message_context(ctx, value)
        if isinstance(value, str):
            if value == "":
                return self._required_error(ctx, value) if self._is_required(ctx) else {}
            moment = self._parse(value)
            if moment is None:
                return {ctx.full_path: [self._msg("format", f"{name} must be a valid time format", mctx)]}
        elif isinstance(value, datetime):
            moment = self._aware(value)
        else:
            return {ctx.full_path: [self._msg("type", f"{name} must be a time value", mctx)]}

        errors: FieldErrors = {}

        def add(rule: str, default: str, param: Any = None) -> None:
            self._add(errors, ctx, mctx, rule, default, param)

        if self._after is not None and not moment > self._aware(self._after):
            add("after", f"{name} must be after {self._text(self._after)}", self._after)
        other = self._field_time(ctx, self._after_field)
        if other is not None and not moment > other:
            add("after_field", f"{name} must be after {self._after_field}", self._after_field)
        if self._before is not None and not moment < self._aware(self._before):
            add("before", f"{name} must be before {self._text(self._before)}", self._before)
        other = self._field_time(ctx, self._before_field)
        if other is not None and not moment < other:
            add("before_field", f"{name} must be before {self._before_field}", self._before_field)
        if self._between is not None:
            start, end = self._between
            if moment < self._aware(start) or moment > self._aware(end):
                add(
                    "between",
                    f"{name} must be between {self._text(start)} and {self._text(end)}",
                    self._between,
                )

        now = datetime.now(timezone.utc)
        if self._after_now and not moment > now:
            add("after_now", f"{name} must be after now")
        if self._before_now and not moment < now:
            add("before_now", f"{name} must be before now")

        self._run_custom(errors, ctx, mctx, moment)
        return errors

    def _parse(self, text: str) -> datetime | None:
        try:
            if self._format is None:
                parsed = datetime.fromisoformat(text)
            else:
                parsed = datetime.strptime(text, self._format)
        except ValueError:
            return None
        return self._aware(parsed)

    def _aware(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self._tz)
        return moment

    def _text(self, moment: datetime) -> str:
        if self._format is None:
            return moment.isoformat()
        return moment.strftime(self._format)

    def _field_time(self, ctx: ValidationContext, field_path: str) -> datetime | None:
        if not field_path:
            return None
        other = lookup_path(ctx.root, field_path)
        if not other.exists:
            return None
        if isinstance(other.value, datetime):
            return self._aware(other.value)
        if isinstance(other.value, str):
            return self._parse(other.value)
        return None


def Time() -> TimeValidator:
    """Create a date/time validator."""
    return TimeValidator()
