"""Shared fixtures."""

from __future__ import annotations

import pytest


def reference_fibonacci(n: int) -> int:
    """Plain iterative F(n)."""
    a, b = 0, 1
    for _ in range(n):
        a, b = b, a + b
    return a


@pytest.fixture
def fib_ref():
    return reference_fibonacci


@pytest.fixture
def force_parallel(monkeypatch):
    """Pretend several execution units are available."""
    monkeypatch.setattr("fibcalc.engine.parallel.available_units", lambda: 8)


@pytest.fixture
def force_sequential(monkeypatch):
    """Pretend a single execution unit is available."""
    monkeypatch.setattr("fibcalc.engine.parallel.available_units", lambda: 1)
