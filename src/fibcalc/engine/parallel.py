"""Per-step task fan-out for the multiplication phases.

Each call spawns fresh short-lived threads and joins them before returning.
Nothing persists between loop iterations.

gmpy2 keeps the GIL during arithmetic unless the thread's context allows
releasing it, and contexts are thread-local. Every task of a fan-out,
including the one run on the calling thread, therefore runs with
``allow_release_gil`` set.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

import gmpy2

Task = Callable[[], None]


def available_units() -> int:
    """Number of execution units the fan-out may use."""
    return os.cpu_count() or 1


def should_parallelize(bit_length: int, threshold: int) -> bool:
    """Return True if operands of ``bit_length`` bits justify a fan-out."""
    return available_units() > 1 and bit_length > threshold


@contextmanager
def releasing_gil() -> Iterator[None]:
    """Let gmpy2 release the GIL on this thread for the duration of the block."""
    ctx = gmpy2.get_context()
    previous = ctx.allow_release_gil
    ctx.allow_release_gil = True
    try:
        yield
    finally:
        ctx.allow_release_gil = previous


class _Worker(threading.Thread):
    """Thread that keeps the exception raised by its task, if any."""

    def __init__(self, task: Task) -> None:
        super().__init__(daemon=True)
        self._task = task
        self.error: BaseException | None = None

    def run(self) -> None:
        try:
            with releasing_gil():
                self._task()
        except BaseException as e:  # re-raised in the joining thread
            self.error = e


def _join_all(workers: Sequence[_Worker]) -> None:
    for worker in workers:
        worker.join()
    for worker in workers:
        if worker.error is not None:
            raise worker.error


def execute_tasks(tasks: Sequence[Task], in_parallel: bool) -> None:
    """Run ``tasks``, one thread each when ``in_parallel``, then join.

    Args:
        tasks: Mutually independent callables writing disjoint destinations.
        in_parallel: Fan out on fresh threads instead of running in order.
    """
    if not in_parallel:
        for task in tasks:
            task()
        return

    workers = [_Worker(task) for task in tasks]
    for worker in workers:
        worker.start()
    _join_all(workers)


def execute_dispatched_and_local(
    dispatched: Sequence[Task], local: Task, in_parallel: bool
) -> None:
    """Run ``dispatched`` on fresh threads while ``local`` runs here.

    With ``in_parallel`` false everything runs in order on the caller.
    """
    if not in_parallel:
        for task in dispatched:
            task()
        local()
        return

    workers = [_Worker(task) for task in dispatched]
    for worker in workers:
        worker.start()
    try:
        with releasing_gil():
            local()
    finally:
        _join_all(workers)
