"""Message context and custom message resolution.

A custom message is either a plain string or a callable receiving a
:class:`MessageContext`::

    String().required(lambda m: f"please tell us your {m.field}")
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Union

from fieldcheck.schema.paths import NO_INDEX, DataAccessor

MessageFunc = Callable[["MessageContext"], str]

#: A custom message: literal text or a function of the message context.
MessageArg = Union[str, MessageFunc]


@dataclass(frozen=True)
class MessageContext:
    """Contextual information for dynamic error messages.

    Attributes:
        field: Field name, e.g. ``"email"``.
        path: Full path, e.g. ``"users.0.email"``.
        index: Array index if inside an array, else ``-1``.
        value: The value being validated.
        rule: The rule that failed, e.g. ``"required"`` or ``"min"``.
        param: The rule parameter if any, e.g. ``3`` for ``min(3)``.
        data: Read accessor into the root data object.
    """

    field: str = ""
    path: str = ""
    index: int = NO_INDEX
    value: Any = None
    rule: str = ""
    param: Any = None
    data: DataAccessor = DataAccessor(None)

    def with_rule(self, rule: str, param: Any = None) -> MessageContext:
        return replace(self, rule=rule, param=param)


def resolve_message(arg: MessageArg | None, ctx: MessageContext) -> str:
    """Resolve ``arg`` to text; ``None`` and unknown kinds resolve to ``""``."""
    if isinstance(arg, str):
        return arg
    if callable(arg):
        return arg(ctx)
    return ""
