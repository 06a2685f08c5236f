"""Reusable computation-state pools.

Engines check out one state object per calculation, mutate it across all
loop iterations and hand it back when they return, whatever the exit path.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)


class Resettable(Protocol):
    """Objects that can be brought back to a clean baseline state."""

    def reset(self) -> None: ...


T = TypeVar("T", bound=Resettable)

DEFAULT_MAX_IDLE = 32


class ObjectPool(Generic[T]):
    """Thread-safe pool of resettable objects.

    Instances coming out of :meth:`acquire` are always reset, so a state
    object never leaks values from its previous calculation.

    Args:
        factory: Builds a fresh instance when the pool is empty.
        max_idle: Maximum number of idle instances retained.
    """

    def __init__(self, factory: Callable[[], T], max_idle: int = DEFAULT_MAX_IDLE) -> None:
        self._factory = factory
        self._max_idle = max_idle
        self._idle: list[T] = []
        self._lock = threading.Lock()
        self.created = 0

    def acquire(self) -> T:
        """Return a reset instance, creating one if none is idle."""
        with self._lock:
            item = self._idle.pop() if self._idle else None
            if item is None:
                self.created += 1
        if item is None:
            item = self._factory()
            logger.debug("Pool created %s instance #%d", type(item).__name__, self.created)
        item.reset()
        return item

    def release(self, item: T | None) -> None:
        """Return ``item`` to the pool. ``None`` is ignored.

        The instance is reset here as well so idle states do not keep
        large integers alive.
        """
        if item is None:
            return
        item.reset()
        with self._lock:
            if len(self._idle) < self._max_idle:
                self._idle.append(item)

    @contextmanager
    def checkout(self) -> Iterator[T]:
        """Acquire an instance for the duration of a ``with`` block."""
        item = self.acquire()
        try:
            yield item
        finally:
            self.release(item)

    @property
    def idle(self) -> int:
        with self._lock:
            return len(self._idle)
