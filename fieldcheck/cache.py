"""Process-wide cache of compiled regular expressions.

Reads vastly outnumber writes: every ``regex()`` rule looks its pattern up,
but each distinct pattern is compiled once.  Lookups take a shared lock;
a miss upgrades to an exclusive lock and re-checks before compiling.
"""
from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from fieldcheck.errors import PatternCompileError

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class PatternCache:
    """Thread-safe cache mapping pattern source to compiled pattern."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._cache: dict[str, re.Pattern[str]] = {}

    def get_or_compile(self, pattern: str) -> re.Pattern[str] | None:
        """Return the compiled ``pattern``, compiling and caching on a miss.

        Args:
            pattern: Regular expression source.

        Returns:
            The compiled pattern, or ``None`` for an empty pattern.

        Raises:
            re.error: If ``pattern`` does not compile.  Nothing is cached.
        """
        if pattern == "":
            return None

        with self._lock.read():
            cached = self._cache.get(pattern)
        if cached is not None:
            return cached

        with self._lock.write():
            cached = self._cache.get(pattern)
            if cached is not None:
                return cached
            logger.debug("compiling pattern %r", pattern)
            compiled = re.compile(pattern)
            self._cache[pattern] = compiled
            return compiled

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._cache)

    def clear(self) -> None:
        with self._lock.write():
            self._cache.clear()


#: The shared cache used by all validators.
pattern_cache = PatternCache()


def trusted_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a known-good static pattern through the shared cache.

    Raises:
        PatternCompileError: If the pattern does not compile.  This is a
            configuration bug and is not recoverable.
    """
    try:
        return pattern_cache.get_or_compile(pattern)
    except re.error as exc:
        raise PatternCompileError(pattern, str(exc)) from exc


def user_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a pattern supplied at schema build time.

    An invalid pattern is logged and yields ``None``, which validators treat
    as "no rule".
    """
    try:
        return pattern_cache.get_or_compile(pattern)
    except re.error as exc:
        logger.warning("ignoring invalid pattern %r: %s", pattern, exc)
        return None
