"""Unit tests for fibcalc.engine.fastdoubling."""

from __future__ import annotations

import pytest

from fibcalc.engine.cancel import CancellationToken
from fibcalc.engine.fastdoubling import (
    STATE_POOL,
    CalculationState,
    FastDoubling,
    multiply_sequential,
    parallel_multiply3,
)
from fibcalc.errors import CalculationCancelled


class TestCalculationState:
    """Tests for the pooled state."""

    def test_reset(self) -> None:
        s = CalculationState()
        s.f_k, s.f_k1, s.t1 = 5, 8, 13
        s.reset()
        assert (s.f_k, s.f_k1) == (0, 1)
        assert s.t1 == 0

    def test_parallel_and_sequential_products_match(self) -> None:
        """Both product strategies fill the same slots."""
        a, b = CalculationState(), CalculationState()
        for s in (a, b):
            s.f_k, s.f_k1 = 3**200, 5**180
            s.t2 = (s.f_k1 << 1) - s.f_k
        multiply_sequential(a)
        parallel_multiply3(b)
        assert (a.t1, a.t3, a.t4) == (b.t1, b.t3, b.t4)
        assert a.t3 == 3**200 * ((5**180 << 1) - 3**200)


class TestFastDoubling:
    """Tests for the FastDoubling core."""

    @pytest.mark.parametrize("n, expected", [(0, 0), (1, 1), (2, 1)])
    def test_trivial_indices_skip_pool(self, n: int, expected: int) -> None:
        """n = 0, 1, 2 are answered without a state checkout."""
        created = STATE_POOL.created
        idle = STATE_POOL.idle
        assert FastDoubling().calculate_core(n, 0) == expected
        assert STATE_POOL.created == created
        assert STATE_POOL.idle == idle

    @pytest.mark.parametrize("n", [3, 4, 5, 10, 20, 63, 64, 93, 94, 100, 127, 128, 1000])
    def test_matches_reference(self, n: int, fib_ref) -> None:
        assert FastDoubling().calculate_core(n, 2048) == fib_ref(n)

    def test_known_values(self) -> None:
        engine = FastDoubling()
        assert engine.calculate_core(100, 2048) == 354224848179261915075
        assert engine.calculate_core(200, 2048) == 280571172992510140037611932413038677189525

    def test_parallel_path(self, force_parallel, fib_ref) -> None:
        """Threshold 0 with several units takes the threaded path."""
        assert FastDoubling().calculate_core(5000, 0) == fib_ref(5000)

    def test_progress_is_monotonic(self) -> None:
        reports: list[float] = []
        FastDoubling().calculate_core(10_000, 2048, reporter=reports.append)
        assert reports
        assert reports == sorted(reports)
        assert all(0.0 < p < 1.0 for p in reports)

    def test_precancelled_token(self) -> None:
        """A triggered token aborts before the first iteration."""
        token = CancellationToken()
        token.cancel("test")
        idle_before = STATE_POOL.idle
        with pytest.raises(CalculationCancelled):
            FastDoubling().calculate_core(10**6, 2048, cancel=token)
        # The state went back to the pool.
        assert STATE_POOL.idle >= max(idle_before, 1)

    def test_state_released_after_success(self) -> None:
        FastDoubling().calculate_core(500, 2048)
        assert STATE_POOL.idle >= 1
