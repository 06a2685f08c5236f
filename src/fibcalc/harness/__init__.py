"""Command-line orchestration for the Fibonacci calculators.

- Concurrent execution of one or all algorithms with a shared progress bar
- Cross-validation of results and exit-code mapping
- Repeated timing with CV-targeted statistics
"""

from __future__ import annotations

from fibcalc.harness.bench import BenchmarkResult, BenchmarkRunner
from fibcalc.harness.runner import CalculationResult, execute_calculations, run
from fibcalc.harness.stats import TimingStats, run_until_stable

__all__ = [
    "BenchmarkResult",
    "BenchmarkRunner",
    "CalculationResult",
    "TimingStats",
    "execute_calculations",
    "run",
    "run_until_stable",
]
