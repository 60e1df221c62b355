"""Unit tests for the compiled-pattern cache."""
from __future__ import annotations

import logging
import re
import threading

import pytest

from fieldcheck.cache import PatternCache, pattern_cache, trusted_pattern, user_pattern
from fieldcheck.errors import PatternCompileError


def test_compiles_once():
    cache = PatternCache()
    first = cache.get_or_compile(r"^\d+$")
    second = cache.get_or_compile(r"^\d+$")
    assert first is second
    assert len(cache) == 1


def test_empty_pattern_is_none():
    cache = PatternCache()
    assert cache.get_or_compile("") is None
    assert len(cache) == 0


def test_bad_pattern_raises_and_is_not_cached():
    cache = PatternCache()
    with pytest.raises(re.error):
        cache.get_or_compile("[a-")
    assert len(cache) == 0


def test_clear():
    cache = PatternCache()
    cache.get_or_compile("a+")
    cache.clear()
    assert len(cache) == 0


def test_concurrent_readers_share_one_compiled_pattern():
    cache = PatternCache()
    results: list[re.Pattern[str] | None] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(200):
            compiled = cache.get_or_compile(r"^[a-z]+-\d+$")
            with lock:
                results.append(compiled)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 1600
    assert len({id(r) for r in results}) == 1


def test_trusted_pattern_fails_fast():
    with pytest.raises(PatternCompileError) as info:
        trusted_pattern("(unclosed")
    assert info.value.pattern == "(unclosed"


def test_trusted_pattern_uses_shared_cache():
    compiled = trusted_pattern(r"^shared-\w+$")
    assert pattern_cache.get_or_compile(r"^shared-\w+$") is compiled


def test_user_pattern_is_inert_on_error(caplog):
    with caplog.at_level(logging.WARNING, logger="fieldcheck.cache"):
        assert user_pattern("[z-a]") is None
    assert "ignoring invalid pattern" in caplog.text
