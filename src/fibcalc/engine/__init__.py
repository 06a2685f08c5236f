"""Arbitrary-precision Fibonacci engines.

- Fast Doubling and Matrix Exponentiation, both O(log n)
- Per-step parallel multiplications above a bit-length threshold
- Pooled, reset-on-acquire computation state
- O(1) lookup table for F(0)..F(93)
"""

from __future__ import annotations

from fibcalc.engine.calculator import (
    CALCULATORS,
    DEFAULT_PARALLEL_THRESHOLD,
    Algorithm,
    Calculator,
    available_algorithms,
    get_calculator,
)
from fibcalc.engine.cancel import CancellationToken
from fibcalc.engine.fastdoubling import FastDoubling
from fibcalc.engine.lookup import MAX_FIB_UINT64, lookup_small
from fibcalc.engine.matrix import MatrixExponentiation
from fibcalc.engine.pool import ObjectPool
from fibcalc.engine.progress import ProgressUpdate, QueueProgressSink

__all__ = [
    "CALCULATORS",
    "DEFAULT_PARALLEL_THRESHOLD",
    "MAX_FIB_UINT64",
    "Algorithm",
    "CancellationToken",
    "Calculator",
    "FastDoubling",
    "MatrixExponentiation",
    "ObjectPool",
    "ProgressUpdate",
    "QueueProgressSink",
    "available_algorithms",
    "get_calculator",
    "lookup_small",
]
