"""Cooperative cancellation tokens.

A token is polled by the engines once per loop iteration. It can be
triggered explicitly (signal handler, sibling failure) or by a deadline.
"""

from __future__ import annotations

import threading
import time

from fibcalc.errors import CalculationCancelled, CalculationTimeout


class CancellationToken:
    """Thread-safe cancellation signal with an optional deadline.

    Args:
        timeout: Seconds from now after which the token reports itself as
            cancelled. ``None`` disables the deadline.
        parent: Optional parent token; cancelling the parent cancels this
            token too.
    """

    def __init__(
        self,
        timeout: float | None = None,
        parent: CancellationToken | None = None,
    ) -> None:
        self._event = threading.Event()
        self._reason: str | None = None
        self._timed_out = False
        self.timeout = timeout
        self.parent = parent
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self, reason: str = "calculation cancelled") -> None:
        """Trigger the token. The first reason wins."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def is_cancelled(self) -> bool:
        """Return True once the token, its deadline or its parent has fired."""
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._timed_out = True
            self._event.set()
            return True
        if self.parent is not None and self.parent.is_cancelled():
            return True
        return False

    @property
    def timed_out(self) -> bool:
        if self._timed_out:
            return True
        return self.parent is not None and self.parent.timed_out

    def error(self) -> CalculationCancelled:
        """Build the exception describing why the token fired."""
        if self.timed_out:
            timeout = self.timeout
            if not self._timed_out and self.parent is not None:
                timeout = self.parent.timeout
            return CalculationTimeout(timeout)
        if self._reason is None and self.parent is not None:
            return self.parent.error()
        return CalculationCancelled(self._reason or "calculation cancelled")

    def raise_if_cancelled(self) -> None:
        """Raise the matching :class:`CalculationCancelled` if triggered."""
        if self.is_cancelled():
            raise self.error()
