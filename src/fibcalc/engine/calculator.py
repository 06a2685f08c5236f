"""Calculator facade and algorithm registry.

:class:`Calculator` wraps a core engine. It answers small indices from the
lookup table, turns any progress callback into a safe, clamped and
monotonic reporter, and guarantees a final 100% report on success.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from gmpy2 import mpz

from fibcalc.engine.cancel import CancellationToken
from fibcalc.engine.fastdoubling import FastDoubling
from fibcalc.engine.lookup import MAX_FIB_UINT64, lookup_small
from fibcalc.engine.matrix import MatrixExponentiation
from fibcalc.engine.progress import ProgressReporter

logger = logging.getLogger(__name__)

# Bit length above which multiplications are spread over threads.
DEFAULT_PARALLEL_THRESHOLD = 2048

MAX_INDEX = 2**64 - 1


class CoreCalculator(Protocol):
    """Contract of a pure calculation engine."""

    name: str

    def calculate_core(
        self,
        n: int,
        threshold: int,
        cancel: CancellationToken | None = None,
        reporter: ProgressReporter | None = None,
    ) -> mpz: ...


class _Reporter:
    """Clamp to [0, 1], drop regressions and isolate sink failures."""

    def __init__(self, sink: ProgressReporter | None) -> None:
        self.sink = sink
        self.last = 0.0

    def __call__(self, progress: float) -> None:
        if self.sink is None:
            return
        progress = min(max(progress, 0.0), 1.0)
        if progress < self.last:
            return
        self.last = progress
        try:
            self.sink(progress)
        except Exception:
            logger.debug("Progress sink failed; update dropped", exc_info=True)


class Calculator:
    """Uniform entry point around a :class:`CoreCalculator`.

    Raises:
        TypeError: If ``core`` is None.
    """

    def __init__(self, core: CoreCalculator | None) -> None:
        if core is None:
            raise TypeError("Calculator requires a core engine, got None")
        self.core = core

    @property
    def name(self) -> str:
        return self.core.name

    def calculate(
        self,
        n: int,
        threshold: int = DEFAULT_PARALLEL_THRESHOLD,
        cancel: CancellationToken | None = None,
        progress: ProgressReporter | None = None,
    ) -> mpz:
        """Compute F(n).

        Args:
            n: Index, ``0 <= n < 2**64``.
            threshold: Parallel multiplication threshold in bits.
            cancel: Optional cancellation token.
            progress: Optional callback receiving values in [0, 1].

        Returns:
            F(n), never shared with the engine or the lookup table.

        Raises:
            ValueError: If ``n`` or ``threshold`` is out of range.
            CalculationCancelled: If ``cancel`` fires during the calculation.
        """
        if isinstance(n, bool) or not isinstance(n, int) or not 0 <= n <= MAX_INDEX:
            raise ValueError(f"n must be an integer in [0, {MAX_INDEX}], got {n!r}")
        if threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {threshold}")

        reporter = _Reporter(progress)

        if n <= MAX_FIB_UINT64:
            reporter(1.0)
            return lookup_small(n)

        logger.debug("%s: computing F(%d), threshold=%d bits", self.name, n, threshold)
        result = self.core.calculate_core(n, threshold, cancel, reporter)
        reporter(1.0)
        return result

    def __repr__(self) -> str:
        return f"Calculator({type(self.core).__name__})"


class Algorithm(str, Enum):
    """Available algorithms, keyed by their CLI name."""

    FAST_DOUBLING = "fast"
    MATRIX = "matrix"


CALCULATORS: dict[str, Calculator] = {
    Algorithm.FAST_DOUBLING.value: Calculator(FastDoubling()),
    Algorithm.MATRIX.value: Calculator(MatrixExponentiation()),
}


def available_algorithms() -> list[str]:
    """Sorted registry keys."""
    return sorted(CALCULATORS)


def get_calculator(name: str | Algorithm) -> Calculator:
    """Look up a calculator by algorithm name.

    Raises:
        KeyError: If the algorithm is unknown.
    """
    key = name.value if isinstance(name, Algorithm) else name.lower()
    try:
        return CALCULATORS[key]
    except KeyError:
        raise KeyError(
            f"unknown algorithm {name!r}, expected one of {available_algorithms()}"
        ) from None
