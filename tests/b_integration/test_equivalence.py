"""Cross-checks of both algorithms against the iterative definition."""

from __future__ import annotations

import threading

import pytest

from fibcalc import fibonacci
from fibcalc.engine.calculator import get_calculator
from fibcalc.engine.lookup import MAX_FIB_UINT64

HUGE_THRESHOLD = 10**9


class TestEquivalence:
    """Both engines agree with the reference implementation."""

    @pytest.mark.parametrize(
        "n",
        list(range(0, 130)) + [255, 256, 257, 1023, 1024, 4096, 10_007, 65_536],
    )
    def test_against_reference(self, n: int, fib_ref) -> None:
        expected = fib_ref(n)
        assert get_calculator("fast").calculate(n) == expected
        assert get_calculator("matrix").calculate(n) == expected

    def test_large_index_spanning_many_words(self) -> None:
        """F(100000) has about 20899 decimal digits."""
        fast = get_calculator("fast").calculate(100_000)
        matrix = get_calculator("matrix").calculate(100_000)
        assert fast == matrix
        assert len(str(fast)) == 20899

    def test_lookup_boundary(self) -> None:
        fast = get_calculator("fast")
        assert fast.calculate(MAX_FIB_UINT64 + 1) == fast.calculate(93) + fast.calculate(92)

    def test_public_helper(self) -> None:
        assert fibonacci(100) == 354224848179261915075
        assert isinstance(fibonacci(100), int)


class TestParallelSequentialEquivalence:
    """Threaded and single-threaded multiplication give identical results."""

    @pytest.mark.parametrize("algo", ["fast", "matrix"])
    def test_threshold_extremes(self, algo: str, force_parallel) -> None:
        calc = get_calculator(algo)
        n = 200_003
        parallel = calc.calculate(n, threshold=0)
        sequential = calc.calculate(n, threshold=HUGE_THRESHOLD)
        assert parallel == sequential

    @pytest.mark.parametrize("algo", ["fast", "matrix"])
    def test_single_unit_never_fans_out(self, algo: str, force_sequential, fib_ref) -> None:
        assert get_calculator(algo).calculate(3000, threshold=0) == fib_ref(3000)


class TestConcurrentCalculations:
    """Several calculations share the pools safely."""

    def test_parallel_calculations(self, fib_ref) -> None:
        indices = [500, 1000, 1500, 2000, 2500, 3000]
        results: dict[tuple[str, int], object] = {}
        lock = threading.Lock()

        def worker(algo: str, n: int) -> None:
            value = get_calculator(algo).calculate(n, threshold=0)
            with lock:
                results[(algo, n)] = value

        threads = [
            threading.Thread(target=worker, args=(algo, n))
            for algo in ("fast", "matrix")
            for n in indices
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for (algo, n), value in results.items():
            assert value == fib_ref(n), (algo, n)
        assert len(results) == 12
