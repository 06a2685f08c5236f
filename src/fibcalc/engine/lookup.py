"""Precomputed Fibonacci values for small indices."""

from __future__ import annotations

from gmpy2 import mpz

from fibcalc.errors import LookupRangeError

# F(93) is the largest Fibonacci number that fits in an unsigned 64-bit integer.
MAX_FIB_UINT64 = 93


def _build_table() -> tuple[int, ...]:
    values = []
    a, b = 0, 1
    for _ in range(MAX_FIB_UINT64 + 1):
        values.append(a)
        a, b = b, a + b
    return tuple(values)


_FIB_TABLE = _build_table()


def lookup_small(n: int) -> mpz:
    """Return F(n) for ``0 <= n <= MAX_FIB_UINT64``.

    Every call builds a new ``mpz``; the table itself is never handed out.

    Raises:
        LookupRangeError: If ``n`` is outside the table.
    """
    if not 0 <= n <= MAX_FIB_UINT64:
        raise LookupRangeError(f"lookup_small: index {n} outside 0..{MAX_FIB_UINT64}")
    return mpz(_FIB_TABLE[n])
