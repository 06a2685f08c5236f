"""Unit tests for fibcalc.harness.stats."""

from __future__ import annotations

import pytest

from fibcalc.harness.stats import (
    coefficient_of_variation,
    compute_stats,
    detect_outliers,
    format_stats,
    run_until_stable,
)


class TestDetectOutliers:
    """Tests for detect_outliers."""

    def test_no_outliers(self) -> None:
        data = [10.0, 11.0, 10.5, 10.2, 10.8, 11.1, 10.3]
        assert detect_outliers(data) == []

    def test_with_outliers(self) -> None:
        data = [10.0, 11.0, 10.5, 10.2, 10.8, 1.0, 100.0]
        outliers = detect_outliers(data)
        assert sorted(outliers) == [1.0, 100.0]

    def test_small_dataset(self) -> None:
        assert detect_outliers([1.0, 2.0, 100.0]) == []


class TestComputeStats:
    """Tests for compute_stats."""

    def test_basic_stats(self) -> None:
        stats = compute_stats([0.1, 0.11, 0.09, 0.10, 0.105])
        assert stats.mean == pytest.approx(0.101, rel=0.01)
        assert stats.median == 0.10
        assert stats.min == 0.09
        assert stats.max == 0.11
        assert stats.cv > 0
        assert stats.runs_to_stable == 5

    def test_outliers_excluded(self) -> None:
        times = [1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 50.0]
        stats = compute_stats(times)
        assert stats.outliers == (50.0,)
        assert stats.mean == 1.0
        assert stats.times == tuple(times)

    def test_empty(self) -> None:
        stats = compute_stats([])
        assert stats.times == ()
        assert stats.mean == 0.0

    def test_cv_of_constant_data(self) -> None:
        assert coefficient_of_variation([2.0, 2.0, 2.0]) == 0.0
        assert coefficient_of_variation([2.0]) == 0.0


class TestRunUntilStable:
    """Tests for run_until_stable."""

    def test_stops_at_min_runs_when_stable(self) -> None:
        calls = []

        def runner() -> float:
            calls.append(1)
            return 0.5

        stats = run_until_stable(runner, min_runs=5, max_runs=50, warmup=2)
        assert len(calls) == 7
        assert len(stats.times) == 5

    def test_respects_max_runs(self) -> None:
        values = iter([0.1, 0.9] * 100)
        stats = run_until_stable(lambda: next(values), min_runs=4, max_runs=12, warmup=0)
        assert len(stats.times) == 12
        assert stats.runs_to_stable == 12


def test_format_stats() -> None:
    text = format_stats(compute_stats([0.010, 0.010, 0.010]))
    assert text.startswith("10.00ms +/- 0µs")
    assert "3 runs" in text
