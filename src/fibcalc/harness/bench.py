"""Repeated timing of the calculators.

Each algorithm computes the same F(n) until its timings are stable; the
values are cross-checked through a digest of their decimal form.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from fibcalc.engine.calculator import DEFAULT_PARALLEL_THRESHOLD, Calculator
from fibcalc.harness.stats import TimingStats, compute_stats, format_stats, run_until_stable

logger = logging.getLogger(__name__)


def result_digest(value: object) -> str:
    """Short SHA-256 digest of a result's decimal representation."""
    return hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:16]


@dataclass
class BenchmarkResult:
    """Timing of one algorithm.

    Attributes:
        algorithm: Registry key.
        name: Calculator display name.
        stats: Timing statistics.
        digest: Digest of the computed value ("" on error).
        error: Error message if a run failed.
    """

    algorithm: str
    name: str
    stats: TimingStats
    digest: str = ""
    error: str | None = None


@dataclass
class BenchmarkProgress:
    """Progress callback payload."""

    algorithm: str
    runs_completed: int


ProgressCallback = Callable[[BenchmarkProgress], None]


@dataclass
class BenchmarkRunner:
    """Times a set of calculators on the same index.

    Attributes:
        n: Fibonacci index.
        threshold: Parallel threshold in bits.
        target_cv: Target coefficient of variation.
        min_runs: Minimum timed runs.
        max_runs: Maximum timed runs.
        warmup: Untimed warmup runs.
        progress_callback: Called after every run.
    """

    n: int
    threshold: int = DEFAULT_PARALLEL_THRESHOLD
    target_cv: float = 0.02
    min_runs: int = 5
    max_runs: int = 30
    warmup: int = 1
    progress_callback: ProgressCallback | None = None

    def run_one(self, key: str, calculator: Calculator) -> BenchmarkResult:
        """Benchmark a single calculator."""
        last_value: list[object] = []
        runs = 0

        def timed() -> float:
            nonlocal runs
            start = time.perf_counter()
            value = calculator.calculate(self.n, self.threshold)
            elapsed = time.perf_counter() - start
            runs += 1
            if not last_value:
                last_value.append(value)
            if self.progress_callback:
                self.progress_callback(BenchmarkProgress(key, runs))
            return elapsed

        try:
            stats = run_until_stable(
                timed,
                min_runs=self.min_runs,
                max_runs=self.max_runs,
                target_cv=self.target_cv,
                warmup=self.warmup,
            )
        except Exception as e:
            logger.exception("Benchmark of %s failed", key)
            return BenchmarkResult(key, calculator.name, compute_stats([]), error=str(e))

        digest = result_digest(last_value[0]) if last_value else ""
        return BenchmarkResult(key, calculator.name, stats, digest)

    def run_all(self, calculators: list[tuple[str, Calculator]]) -> list[BenchmarkResult]:
        return [self.run_one(key, calc) for key, calc in calculators]


def results_agree(results: list[BenchmarkResult]) -> bool:
    """True when every successful result has the same digest."""
    digests = {r.digest for r in results if r.error is None}
    return len(digests) <= 1


def format_benchmark_table(n: int, results: list[BenchmarkResult]) -> str:
    """Format benchmark results, fastest first."""
    lines = ["=" * 80, f"BENCHMARK F({n})", "=" * 80]
    lines.append(f"{'Algorithm':<10} {'Timing':<45} {'Digest':>16}")
    lines.append("-" * 80)

    ordered = sorted(results, key=lambda r: (r.error is not None, r.stats.mean))
    for res in ordered:
        if res.error:
            lines.append(f"{res.algorithm:<10} FAILED: {res.error}")
        else:
            lines.append(f"{res.algorithm:<10} {format_stats(res.stats):<45} {res.digest:>16}")

    successes = [r for r in ordered if r.error is None and r.stats.mean > 0]
    if len(successes) > 1:
        fastest = successes[0]
        lines.append("-" * 80)
        for other in successes[1:]:
            ratio = other.stats.mean / fastest.stats.mean
            lines.append(f"  {fastest.algorithm} is {ratio:.2f}x faster than {other.algorithm}")

    return "\n".join(lines)
