"""Scratch-object pools shared across validation calls.

Pools only save allocations; results are identical with pooling disabled::

    from fieldcheck.pool import configure_pools
    configure_pools(enabled=False)

Objects are reset when released and are not returned to a pool once they have
grown past the pool's ``oversize`` threshold.
"""
from __future__ import annotations

import threading
from collections.abc import Callable, Sized
from typing import Generic, TypeVar

T = TypeVar("T")


class ObjectPool(Generic[T]):
    """A bounded, thread-safe free list.

    Args:
        factory: Creates a new object when the pool is empty.
        reset: Clears an object when it is released, so idle objects hold no data.
        max_size: Maximum number of idle objects kept.
        oversize: Objects whose ``size_of`` exceeds this are dropped on release.
        size_of: Measures an object; defaults to ``len``.
    """

    def __init__(
        self,
        factory: Callable[[], T],
        reset: Callable[[T], None],
        max_size: int = 64,
        oversize: int = 256,
        size_of: Callable[[T], int] | None = None,
    ) -> None:
        self._factory = factory
        self._reset = reset
        self._max_size = max_size
        self._oversize = oversize
        self._size_of = size_of or _len
        self._free: list[T] = []
        self._lock = threading.Lock()
        self.enabled = True

    def acquire(self) -> T:
        """Return a clean object, reusing an idle one when possible."""
        if self.enabled:
            with self._lock:
                if self._free:
                    return self._free.pop()
        return self._factory()

    def release(self, obj: T | None) -> None:
        """Hand ``obj`` back.  Oversized objects are discarded."""
        if obj is None or not self.enabled:
            return
        if self._size_of(obj) > self._oversize:
            return
        self._reset(obj)
        with self._lock:
            if len(self._free) < self._max_size:
                self._free.append(obj)

    def idle(self) -> int:
        with self._lock:
            return len(self._free)

    def clear(self) -> None:
        with self._lock:
            self._free.clear()


def _len(obj: object) -> int:
    return len(obj) if isinstance(obj, Sized) else 0


class PoolRegistry:
    """Lazily-created, named pools; injectable for tests."""

    def __init__(self) -> None:
        self._pools: dict[str, ObjectPool] = {}
        self._lock = threading.Lock()
        self._enabled = True

    def get(self, name: str, make: Callable[[], ObjectPool]) -> ObjectPool:
        pool = self._pools.get(name)
        if pool is not None:
            return pool
        with self._lock:
            pool = self._pools.get(name)
            if pool is None:
                pool = make()
                pool.enabled = self._enabled
                self._pools[name] = pool
            return pool

    def configure(self, enabled: bool) -> None:
        with self._lock:
            self._enabled = enabled
            for pool in self._pools.values():
                pool.enabled = enabled
                if not enabled:
                    pool.clear()


#: Process-wide registry used by the walker and the batch grouper.
pools = PoolRegistry()


def configure_pools(enabled: bool = True) -> None:
    """Turn pooling on or off process-wide."""
    pools.configure(enabled)


def check_list_pool() -> ObjectPool[list]:
    """Pool of lists used to collect declared checks during one call."""
    return pools.get("check_list", lambda: ObjectPool(list, list.clear, max_size=32, oversize=256))
