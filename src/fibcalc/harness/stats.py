"""Timing statistics for repeated calculations.

Repeats a timed callable until the coefficient of variation (CV) drops
below a target, then summarizes the samples with outliers removed.
"""

from __future__ import annotations

import statistics
from collections.abc import Callable
from dataclasses import dataclass, field

from fibcalc.harness.display import format_duration


@dataclass(frozen=True)
class TimingStats:
    """Summary of timed runs.

    Attributes:
        times: Raw timings in seconds, in run order.
        mean: Arithmetic mean of the retained samples.
        median: Median of the retained samples.
        stddev: Sample standard deviation.
        cv: Coefficient of variation (stddev / mean).
        min: Fastest retained sample.
        max: Slowest retained sample.
        outliers: Samples excluded by the IQR rule.
        runs_to_stable: Number of runs performed before stopping.
    """

    times: tuple[float, ...]
    mean: float
    median: float
    stddev: float
    cv: float
    min: float
    max: float
    outliers: tuple[float, ...] = field(default_factory=tuple)
    runs_to_stable: int = 0


def detect_outliers(data: list[float], factor: float = 1.5) -> list[float]:
    """Values outside [Q1 - factor*IQR, Q3 + factor*IQR].

    Fewer than four samples never produce outliers.
    """
    if len(data) < 4:
        return []
    q1, _, q3 = statistics.quantiles(data, n=4)
    iqr = q3 - q1
    low, high = q1 - factor * iqr, q3 + factor * iqr
    return [x for x in data if x < low or x > high]


def coefficient_of_variation(data: list[float]) -> float:
    if len(data) < 2:
        return 0.0
    mean = statistics.mean(data)
    return statistics.stdev(data) / mean if mean > 0 else 0.0


def compute_stats(times: list[float], runs_to_stable: int = 0) -> TimingStats:
    """Summarize ``times``, excluding outliers while at least two remain."""
    if not times:
        return TimingStats(times=(), mean=0.0, median=0.0, stddev=0.0, cv=0.0, min=0.0, max=0.0)

    outliers = detect_outliers(times)
    kept = [t for t in times if t not in outliers] if outliers else times
    if len(kept) < 2:
        kept = times

    mean = statistics.mean(kept)
    stddev = statistics.stdev(kept) if len(kept) > 1 else 0.0
    return TimingStats(
        times=tuple(times),
        mean=mean,
        median=statistics.median(kept),
        stddev=stddev,
        cv=stddev / mean if mean > 0 else 0.0,
        min=min(kept),
        max=max(kept),
        outliers=tuple(outliers),
        runs_to_stable=runs_to_stable or len(times),
    )


def run_until_stable(
    runner: Callable[[], float],
    min_runs: int = 5,
    max_runs: int = 50,
    target_cv: float = 0.01,
    warmup: int = 1,
    batch_size: int = 5,
) -> TimingStats:
    """Time ``runner`` until CV <= ``target_cv`` or ``max_runs`` is reached.

    Args:
        runner: Performs one run and returns its duration in seconds.
        min_runs: Timed runs before the first CV check.
        max_runs: Upper bound on timed runs.
        target_cv: Target coefficient of variation.
        warmup: Untimed runs executed first.
        batch_size: Runs added between two CV checks.
    """
    for _ in range(warmup):
        runner()

    times = [runner() for _ in range(min_runs)]
    while len(times) < max_runs and coefficient_of_variation(times) > target_cv:
        for _ in range(min(batch_size, max_runs - len(times))):
            times.append(runner())

    return compute_stats(times, runs_to_stable=len(times))


def format_stats(stats: TimingStats) -> str:
    """One-line summary, e.g. "12.35ms +/- 0.21ms (CV=1.70%, 10 runs)"."""
    return (
        f"{format_duration(stats.mean)} +/- {format_duration(stats.stddev)} "
        f"(CV={stats.cv * 100:.2f}%, {len(stats.times)} runs)"
    )
