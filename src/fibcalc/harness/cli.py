"""Command-line interface.

Provides the `fibcalc` command with subcommands for:
- Computing F(n) with one or all algorithms (`run`)
- Timing the algorithms repeatedly (`bench`)
- Listing the available algorithms (`algorithms`)
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

from fibcalc.config import ALL_ALGORITHMS, AppConfig, load_config, merge_cli
from fibcalc.engine.calculator import DEFAULT_PARALLEL_THRESHOLD, available_algorithms, get_calculator
from fibcalc.engine.cancel import CancellationToken
from fibcalc.errors import ConfigError
from fibcalc.harness.bench import (
    BenchmarkProgress,
    BenchmarkRunner,
    format_benchmark_table,
    results_agree,
)
from fibcalc.harness.runner import (
    EXIT_ERROR_CONFIG,
    EXIT_ERROR_MISMATCH,
    EXIT_SUCCESS,
    run,
    select_calculators,
)

logger = logging.getLogger(__name__)

# Repeated timing of F(100_000_000) would take minutes.
BENCH_DEFAULT_N = 1_000_000


class _ArgumentParser(argparse.ArgumentParser):
    """Parser reporting usage errors with the configuration exit code."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR_CONFIG, f"{self.prog}: error: {message}\n")


@contextmanager
def cancel_on_signals(token: CancellationToken) -> Iterator[CancellationToken]:
    """Cancel ``token`` on SIGINT/SIGTERM for the duration of the block."""
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def handler(signum: int, frame: object) -> None:
        token.cancel(f"received {signal.Signals(signum).name}")

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield token
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def build_config(args: argparse.Namespace, base: AppConfig | None = None) -> AppConfig:
    """Combine defaults (or ``base``), the optional config file and CLI flags."""
    base = base if base is not None else AppConfig()
    config = load_config(args.config, base) if args.config else base
    config = merge_cli(config, args)
    config.validate(available_algorithms())
    return config


def cmd_run(args: argparse.Namespace) -> int:
    """Compute F(n)."""
    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR_CONFIG

    with cancel_on_signals(CancellationToken()) as token:
        return run(config, sys.stdout, cancel=token, show_progress=not args.quiet)


def cmd_bench(args: argparse.Namespace) -> int:
    """Time the algorithms."""
    try:
        config = build_config(args, AppConfig(n=BENCH_DEFAULT_N))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR_CONFIG

    def progress(p: BenchmarkProgress) -> None:
        print(f"  [{p.algorithm}] run {p.runs_completed}...", end="\r", flush=True)

    runner = BenchmarkRunner(
        n=config.n,
        threshold=config.threshold,
        target_cv=args.cv_target,
        min_runs=args.min_runs,
        max_runs=args.max_runs,
        warmup=args.warmup,
        progress_callback=None if args.quiet else progress,
    )

    print(f"Benchmarking F({config.n}) (target CV: {args.cv_target * 100:.1f}%)...")
    results = runner.run_all(select_calculators(config.algo))

    print(" " * 50, end="\r")
    print(format_benchmark_table(config.n, results))

    if not results_agree(results):
        print("\nMismatch: the algorithms produced different results.")
        return EXIT_ERROR_MISMATCH
    return EXIT_SUCCESS


def cmd_algorithms(args: argparse.Namespace) -> int:
    """List available algorithms."""
    print(f"{'Key':<10} Name")
    print("-" * 70)
    for key in available_algorithms():
        print(f"{key:<10} {get_calculator(key).name}")
    return 0


def _add_calculation_arguments(parser: argparse.ArgumentParser, default_n: str) -> None:
    # Defaults are None so that only explicit flags override the config file.
    algos = ", ".join(available_algorithms())
    parser.add_argument(
        "-n",
        type=int,
        default=None,
        help=f"Index of the Fibonacci number to compute (default: {default_n})",
    )
    parser.add_argument(
        "--algo",
        default=None,
        help=f"Algorithm: '{ALL_ALGORITHMS}' (comparison) or one of [{algos}] (default: all)",
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help=f"Bit length above which multiplications run in parallel (default: {DEFAULT_PARALLEL_THRESHOLD})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML configuration file",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = _ArgumentParser(
        prog="fibcalc",
        description="Arbitrary-precision Fibonacci calculator",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Compute F(n)")
    _add_calculation_arguments(run_parser, default_n="100000000")
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Maximum execution time in seconds (default: 300)",
    )
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Print the full result instead of a truncated one",
    )
    run_parser.set_defaults(func=cmd_run)

    # bench command
    bench_parser = subparsers.add_parser("bench", help="Time the algorithms")
    _add_calculation_arguments(bench_parser, default_n=str(BENCH_DEFAULT_N))
    bench_parser.add_argument(
        "--cv-target",
        type=float,
        default=0.02,
        help="Target coefficient of variation (default: 0.02 = 2%%)",
    )
    bench_parser.add_argument(
        "--min-runs",
        type=int,
        default=5,
        help="Minimum number of timed runs (default: 5)",
    )
    bench_parser.add_argument(
        "--max-runs",
        type=int,
        default=30,
        help="Maximum number of timed runs (default: 30)",
    )
    bench_parser.add_argument(
        "--warmup",
        type=int,
        default=1,
        help="Number of warmup runs (default: 1)",
    )
    bench_parser.set_defaults(func=cmd_bench)

    # algorithms command
    algorithms_parser = subparsers.add_parser("algorithms", help="List available algorithms")
    algorithms_parser.set_defaults(func=cmd_algorithms)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
