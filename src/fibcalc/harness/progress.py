"""Aggregate progress bar for one or more concurrent calculators."""

from __future__ import annotations

import queue
import sys
import threading
from typing import TextIO

from fibcalc.engine.progress import ProgressUpdate

# Seconds between two redraws of the bar.
PROGRESS_REFRESH_RATE = 0.1
PROGRESS_BAR_WIDTH = 40

FILLED_CHAR = "█"
EMPTY_CHAR = "░"


def progress_bar(progress: float, length: int = PROGRESS_BAR_WIDTH) -> str:
    """Render ``progress`` (clamped to [0, 1]) as a bar of ``length`` cells."""
    progress = min(max(progress, 0.0), 1.0)
    count = int(progress * length)
    return FILLED_CHAR * count + EMPTY_CHAR * (length - count)


class ProgressState:
    """Latest progress of each calculator.

    Args:
        num_calculators: Number of calculators reporting.
        out: Stream the bar is written to.
    """

    def __init__(self, num_calculators: int, out: TextIO | None = None) -> None:
        self.progresses = [0.0] * num_calculators
        self.num_calculators = num_calculators
        self.out = out if out is not None else sys.stdout

    def update(self, index: int, value: float) -> None:
        if 0 <= index < len(self.progresses):
            self.progresses[index] = value

    def average(self) -> float:
        if self.num_calculators == 0:
            return 0.0
        return sum(self.progresses) / self.num_calculators

    def render(self) -> str:
        avg = self.average()
        label = "Average progress" if self.num_calculators > 1 else "Progress"
        return f"{label}: {avg * 100:6.2f}% [{progress_bar(avg)}]"

    def print_bar(self, final: bool = False) -> None:
        self.out.write("\r\033[K" + self.render())
        if final:
            self.out.write("\n")
        self.out.flush()


class ProgressDisplay(threading.Thread):
    """Consumes :class:`ProgressUpdate` messages and redraws the bar.

    Call :meth:`close` once all producers are finished; the thread then
    drains the queue, prints the final bar and exits.
    """

    def __init__(
        self,
        updates: queue.Queue[ProgressUpdate],
        num_calculators: int,
        out: TextIO | None = None,
        refresh_rate: float = PROGRESS_REFRESH_RATE,
        enabled: bool = True,
    ) -> None:
        super().__init__(name="fibcalc-progress", daemon=True)
        self.updates = updates
        self.state = ProgressState(num_calculators, out)
        self.refresh_rate = refresh_rate
        self.enabled = enabled and num_calculators > 0
        self._closed = threading.Event()

    def close(self) -> None:
        self._closed.set()
        self.join()

    def _drain(self) -> None:
        while True:
            try:
                update = self.updates.get_nowait()
            except queue.Empty:
                return
            self.state.update(update.calculator_index, update.value)

    def run(self) -> None:
        while not self._closed.is_set():
            try:
                update = self.updates.get(timeout=self.refresh_rate)
            except queue.Empty:
                pass
            else:
                self.state.update(update.calculator_index, update.value)
                self._drain()
            if self.enabled:
                self.state.print_bar()

        self._drain()
        if self.enabled:
            self.state.print_bar(final=True)
