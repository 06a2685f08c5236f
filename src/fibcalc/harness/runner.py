"""Calculation orchestration.

Runs one or several calculators concurrently for the same index, feeds a
shared progress display, cross-checks the results and maps the outcome
to a process exit code.
"""

from __future__ import annotations

import logging
import os
import platform
import queue
import sys
import threading
import time
from dataclasses import dataclass
from typing import TextIO

from gmpy2 import mpz

from fibcalc.config import ALL_ALGORITHMS, AppConfig
from fibcalc.engine.calculator import Calculator, available_algorithms, get_calculator
from fibcalc.engine.cancel import CancellationToken
from fibcalc.engine.progress import ProgressUpdate, QueueProgressSink
from fibcalc.errors import CalculationCancelled, CalculationTimeout
from fibcalc.harness.display import format_duration, format_result
from fibcalc.harness.progress import ProgressDisplay

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR_GENERIC = 1
EXIT_ERROR_TIMEOUT = 2
EXIT_ERROR_MISMATCH = 3
EXIT_ERROR_CONFIG = 4
EXIT_ERROR_CANCELED = 130

# Progress queue slots per calculator.
PROGRESS_BUFFER_MULTIPLIER = 10

# Seconds between checks while waiting on calculator threads.
JOIN_POLL_INTERVAL = 0.1


@dataclass
class CalculationResult:
    """Outcome of one calculator.

    Attributes:
        name: Calculator display name.
        algorithm: Registry key of the calculator.
        result: Computed value, None on failure.
        duration: Wall-clock time in seconds.
        error: Exception raised by the calculator, if any.
    """

    name: str
    algorithm: str
    result: mpz | None
    duration: float
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


def select_calculators(algo: str) -> list[tuple[str, Calculator]]:
    """Calculators to run for ``algo`` ("all" selects every one, sorted)."""
    if algo == ALL_ALGORITHMS:
        return [(key, get_calculator(key)) for key in available_algorithms()]
    return [(algo, get_calculator(algo))]


def _run_one(
    key: str,
    calculator: Calculator,
    config: AppConfig,
    cancel: CancellationToken,
    sink: QueueProgressSink,
) -> CalculationResult:
    start = time.perf_counter()
    try:
        value = calculator.calculate(config.n, config.threshold, cancel, sink)
    except CalculationCancelled as e:
        logger.info("%s stopped: %s", calculator.name, e)
        return CalculationResult(calculator.name, key, None, time.perf_counter() - start, e)
    except Exception as e:
        logger.exception("%s failed", calculator.name)
        return CalculationResult(calculator.name, key, None, time.perf_counter() - start, e)
    return CalculationResult(calculator.name, key, value, time.perf_counter() - start)


def execute_calculations(
    calculators: list[tuple[str, Calculator]],
    config: AppConfig,
    cancel: CancellationToken,
    out: TextIO | None = None,
    show_progress: bool = True,
) -> list[CalculationResult]:
    """Run ``calculators`` concurrently, one thread each.

    Args:
        calculators: ``(key, calculator)`` pairs.
        config: Run configuration (index and threshold).
        cancel: Token shared by every calculator.
        out: Stream for the progress bar.
        show_progress: Render the aggregate progress bar.

    Returns:
        One result per calculator, in the order given.
    """
    updates: queue.Queue[ProgressUpdate] = queue.Queue(
        maxsize=max(1, len(calculators)) * PROGRESS_BUFFER_MULTIPLIER
    )
    results: list[CalculationResult | None] = [None] * len(calculators)

    def worker(index: int, key: str, calculator: Calculator) -> None:
        sink = QueueProgressSink(updates, index)
        results[index] = _run_one(key, calculator, config, cancel, sink)

    threads = [
        threading.Thread(
            target=worker, args=(i, key, calc), name=f"fibcalc-{key}", daemon=True
        )
        for i, (key, calc) in enumerate(calculators)
    ]

    display = ProgressDisplay(updates, len(calculators), out, enabled=show_progress)
    display.start()
    for thread in threads:
        thread.start()
    # Short joins keep the main thread responsive to signal handlers.
    for thread in threads:
        while thread.is_alive():
            thread.join(JOIN_POLL_INTERVAL)
    display.close()

    return [r for r in results if r is not None]


def handle_calculation_error(
    err: BaseException | None, duration: float, timeout: float, out: TextIO
) -> int:
    """Print a status line for ``err`` and return the matching exit code."""
    if err is None:
        return EXIT_SUCCESS
    suffix = f" after {format_duration(duration)}" if duration > 0 else ""

    if isinstance(err, CalculationTimeout):
        print(f"Status: Failure (timeout). The time limit ({timeout:g}s) was exceeded{suffix}.", file=out)
        return EXIT_ERROR_TIMEOUT
    if isinstance(err, CalculationCancelled):
        print(f"Status: Cancelled ({err.reason}){suffix}.", file=out)
        return EXIT_ERROR_CANCELED
    print(f"Status: Failure. Unexpected internal error: {err}", file=out)
    return EXIT_ERROR_GENERIC


def format_comparison_table(results: list[CalculationResult]) -> str:
    """Format comparison results as an aligned table."""
    rows = []
    for res in results:
        status = "OK" if res.ok else f"FAILED ({res.error})"
        rows.append((res.name, format_duration(res.duration), status))

    col1 = max([len("Algorithm")] + [len(r[0]) for r in rows])
    col2 = max([len("Duration")] + [len(r[1]) for r in rows])

    lines = [f"  {'Algorithm':<{col1}} | {'Duration':<{col2}} | Status"]
    lines.append(f"  {'-' * (col1 + 1)}+{'-' * (col2 + 2)}+{'-' * 45}")
    for name, duration, status in rows:
        lines.append(f"  {name:<{col1}} | {duration:<{col2}} | {status}")
    return "\n".join(lines)


def analyze_comparison_results(
    results: list[CalculationResult], config: AppConfig, out: TextIO
) -> int:
    """Print the comparison of several calculators and return an exit code.

    Successful results come first, fastest first. All successful values
    must be identical.
    """
    results = sorted(results, key=lambda r: (not r.ok, r.duration))

    print("\n--- Comparison results (benchmark & validation) ---\n", file=out)
    print(format_comparison_table(results), file=out)

    successes = [r for r in results if r.ok]
    if not successes:
        print("\nGlobal status: Failure. Every calculation failed.", file=out)
        first_error = next((r.error for r in results if r.error is not None), None)
        return handle_calculation_error(first_error, 0.0, config.timeout, out)

    reference = successes[0].result
    if any(r.result != reference for r in successes[1:]):
        print(
            "\nGlobal status: Critical failure! The algorithms produced different results.",
            file=out,
        )
        return EXIT_ERROR_MISMATCH

    print("\nGlobal status: Success. All valid results are identical.", file=out)
    print(format_result(reference, config.n, verbose=config.verbose), file=out)
    return EXIT_SUCCESS


def run(
    config: AppConfig,
    out: TextIO | None = None,
    cancel: CancellationToken | None = None,
    show_progress: bool = True,
) -> int:
    """Run the configured calculation(s) and report on ``out``.

    Args:
        config: Validated configuration.
        out: Output stream (stdout by default).
        cancel: Parent token (e.g. triggered by a signal handler); the run
            adds its own deadline of ``config.timeout`` seconds.
        show_progress: Render the progress bar.

    Returns:
        Process exit code.
    """
    out = out if out is not None else sys.stdout
    token = CancellationToken(timeout=config.timeout, parent=cancel)

    print("--- Configuration ---", file=out)
    print(f"Computing F({config.n}).", file=out)
    print(
        f"System: CPU cores={os.cpu_count()} | Python={platform.python_version()}",
        file=out,
    )
    print(
        f"Parameters: timeout={config.timeout:g}s | parallel threshold={config.threshold} bits",
        file=out,
    )

    calculators = select_calculators(config.algo)
    if len(calculators) > 1:
        print("Mode: comparison (parallel execution).", file=out)
    else:
        print(f"Mode: single run. Algorithm: {calculators[0][1].name}", file=out)
    print("\n--- Execution ---", file=out)

    results = execute_calculations(calculators, config, token, out, show_progress)

    if len(results) == 1:
        res = results[0]
        print("\n--- Final result ---", file=out)
        if not res.ok:
            return handle_calculation_error(res.error, res.duration, config.timeout, out)
        print(format_result(res.result, config.n, res.duration, config.verbose), file=out)
        return EXIT_SUCCESS

    return analyze_comparison_results(results, config, out)
