"""fibcalc: arbitrary-precision Fibonacci numbers in O(log n)."""

from __future__ import annotations

from fibcalc.engine import (
    CALCULATORS,
    DEFAULT_PARALLEL_THRESHOLD,
    Algorithm,
    CancellationToken,
    Calculator,
    get_calculator,
)
from fibcalc.errors import CalculationCancelled, CalculationTimeout, FibCalcError

__version__ = "1.0.0"


def fibonacci(n: int, algo: str = "fast", threshold: int = DEFAULT_PARALLEL_THRESHOLD) -> int:
    """Compute F(n) with the named algorithm and return it as a Python int."""
    return int(get_calculator(algo).calculate(n, threshold))


__all__ = [
    "CALCULATORS",
    "DEFAULT_PARALLEL_THRESHOLD",
    "Algorithm",
    "CalculationCancelled",
    "CalculationTimeout",
    "CancellationToken",
    "Calculator",
    "FibCalcError",
    "fibonacci",
    "get_calculator",
]
