"""Progress reporting contracts shared by the engines and the harness."""

from __future__ import annotations

import queue
from collections.abc import Callable
from dataclasses import dataclass

# Engines only know how to report a float in [0, 1], not where it goes.
ProgressReporter = Callable[[float], None]


def null_reporter(progress: float) -> None:
    """Reporter that discards every update."""


@dataclass(frozen=True)
class ProgressUpdate:
    """Progress message travelling from a calculator to the display.

    Attributes:
        calculator_index: Which calculator (in comparison mode) sent it.
        value: Normalized progress between 0.0 and 1.0.
    """

    calculator_index: int
    value: float


class QueueProgressSink:
    """Best-effort adapter from a reporter callback to a bounded queue.

    Updates are dropped when the queue is full so that a slow consumer
    never stalls the calculation.
    """

    def __init__(self, updates: queue.Queue[ProgressUpdate], index: int) -> None:
        self.updates = updates
        self.index = index
        self.dropped = 0

    def __call__(self, progress: float) -> None:
        try:
            self.updates.put_nowait(ProgressUpdate(self.index, progress))
        except queue.Full:
            self.dropped += 1
