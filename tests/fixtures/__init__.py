"""Test fixtures: a recording fake checker, sample DDL and tiny binary files."""

from __future__ import annotations

import struct
import threading
import zlib
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fieldcheck.schema.context import CancelToken
from fieldcheck.schema.rules import WhereClause

_FIXTURES_DIR = Path(__file__).parent


@dataclass(frozen=True)
class Call:
    table: str
    column: str
    values: tuple[Any, ...]
    where: tuple[WhereClause, ...]
    thread: str


class RecordingChecker:
    """Fake checker with a thread-safe call log.

    Args:
        present: ``{(table, column): values}`` reported as existing.
        fail: Tables whose lookups raise ``RuntimeError``.
    """

    def __init__(
        self,
        present: Mapping[tuple[str, str], Iterable[Any]] | None = None,
        fail: Iterable[str] = (),
    ) -> None:
        self._present = {key: list(values) for key, values in (present or {}).items()}
        self._fail = set(fail)
        self._lock = threading.Lock()
        self.calls: list[Call] = []

    def check_exists(
        self,
        ctx: CancelToken,
        table: str,
        column: str,
        values: Sequence[Any],
        where: Sequence[WhereClause],
    ) -> Mapping[Any, bool]:
        if not values:
            return {}
        with self._lock:
            self.calls.append(
                Call(table, column, tuple(values), tuple(where), threading.current_thread().name)
            )
        if table in self._fail:
            raise RuntimeError(f"connection to {table} lost")
        known = self._present.get((table, column), [])
        return {value: True for value in known if value in values}

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def tables(self) -> list[str]:
        with self._lock:
            return sorted(call.table for call in self.calls)


def load_ddl() -> str:
    """Return the sample SQLite DDL and seed rows."""
    return (_FIXTURES_DIR / "ddl_sqlite.sql").read_text()


def png_bytes(width: int, height: int) -> bytes:
    """Smallest well-formed PNG header of the given size (IHDR only)."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    return (
        b"\x89PNG\r\n\x1a\n"
        + struct.pack(">I", len(ihdr))
        + chunk
        + struct.pack(">I", zlib.crc32(chunk))
    )


def gif_bytes(width: int, height: int) -> bytes:
    return b"GIF89a" + struct.pack("<HH", width, height) + b"\x00\x00\x00"


def jpeg_bytes(width: int, height: int) -> bytes:
    """SOI, an APP0 segment, then a baseline SOF0 carrying the size."""
    app0 = b"\xff\xe0" + struct.pack(">H", 16) + b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    sof0 = b"\xff\xc0" + struct.pack(">HBHHB", 11, 8, height, width, 1) + b"\x01\x11\x00"
    return b"\xff\xd8" + app0 + sof0
