"""Dotted path resolution into nested data.

Paths use ``.`` as separator; numeric segments index into lists::

    lookup_path({"items": [{"id": 7}]}, "items.0.id").value  # -> 7

The same notation is used for error keys, so a message for the ``id`` of the
first item is reported under ``"items.0.id"``.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

#: Sentinel index for a path that is not inside an array.
NO_INDEX = -1


@dataclass(frozen=True)
class LookupResult:
    """Result of a path lookup.

    Attributes:
        value: The value found, or ``None``.
        exists: Whether the path resolved at all (distinguishes a missing key
            from an explicit ``None``).
    """

    value: Any = None
    exists: bool = False

    def as_str(self) -> str:
        """Returns the value if it is a ``str``, else ``""``."""
        return self.value if isinstance(self.value, str) else ""

    def as_int(self) -> int:
        """Returns the value as an ``int`` if numeric, else ``0``."""
        if _is_number(self.value):
            return int(self.value)
        return 0

    def as_float(self) -> float:
        """Returns the value as a ``float`` if numeric, else ``0.0``."""
        if _is_number(self.value):
            return float(self.value)
        return 0.0

    def as_bool(self) -> bool:
        """Returns the value if it is a ``bool``, else ``False``."""
        return self.value if isinstance(self.value, bool) else False

    def get(self, key: str) -> LookupResult:
        """Returns a nested value by key (objects only)."""
        if isinstance(self.value, Mapping) and key in self.value:
            return LookupResult(self.value[key], True)
        return LookupResult()

    def is_array(self) -> bool:
        return _is_sequence(self.value)

    def is_object(self) -> bool:
        return isinstance(self.value, Mapping)

    def as_list(self) -> list[Any] | None:
        """Returns the value as a list, or ``None`` if it is not an array."""
        return list(self.value) if _is_sequence(self.value) else None


class DataAccessor:
    """Read-only accessor over the root data object.

    Handed to custom message functions so they can compose messages that
    reference sibling data.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None) -> None:
        self._data = data

    def get(self, path: str) -> LookupResult:
        """Look up a dot-notation path, e.g. ``"user.profile.name"``."""
        if self._data is None:
            return LookupResult()
        return lookup_path(self._data, path)

    def __repr__(self) -> str:
        return f"DataAccessor({self._data!r})"


def lookup_path(data: Mapping[str, Any] | None, path: str) -> LookupResult:
    """Traverse ``data`` following a dotted ``path``.

    Args:
        data: The root object.
        path: Dotted path; an empty path returns the root itself.

    Returns:
        A :class:`LookupResult`; ``exists`` is ``False`` as soon as a segment
        cannot be resolved.
    """
    if data is None:
        return LookupResult()
    if path == "":
        return LookupResult(data, True)

    current: Any = data
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return LookupResult()
            current = current[part]
        elif _is_sequence(current) and part.isdigit():
            idx = int(part)
            if idx >= len(current):
                return LookupResult()
            current = current[idx]
        else:
            return LookupResult()
    return LookupResult(current, True)


def build_path(*parts: str) -> str:
    """Join path segments with ``.``, skipping empty ones."""
    return ".".join(p for p in parts if p != "")


def extract_index(path: str) -> int:
    """Return the innermost array index in ``path``, or :data:`NO_INDEX`.

    ``"users.3.email"`` -> ``3``; ``"user.email"`` -> ``-1``.
    """
    for part in reversed(path.split(".")):
        if part.isdigit():
            return int(part)
    return NO_INDEX


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
