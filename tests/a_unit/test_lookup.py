"""Unit tests for fibcalc.engine.lookup."""

from __future__ import annotations

import pytest

from fibcalc.engine.lookup import MAX_FIB_UINT64, lookup_small
from fibcalc.errors import LookupRangeError

F93 = 12200160415121876738


class TestLookupSmall:
    """Tests for lookup_small."""

    def test_first_values(self) -> None:
        """Test the start of the sequence."""
        assert [lookup_small(i) for i in range(10)] == [0, 1, 1, 2, 3, 5, 8, 13, 21, 34]

    def test_upper_bound(self) -> None:
        """F(93) is the last entry and fits in 64 bits."""
        assert MAX_FIB_UINT64 == 93
        assert lookup_small(93) == F93
        assert lookup_small(93) < 2**64

    def test_matches_reference(self, fib_ref) -> None:
        """Every entry matches the iterative definition."""
        for n in range(MAX_FIB_UINT64 + 1):
            assert lookup_small(n) == fib_ref(n)

    @pytest.mark.parametrize("n", [-1, 94, 1000])
    def test_out_of_range(self, n: int) -> None:
        """Reads outside the table are programming errors."""
        with pytest.raises(LookupRangeError):
            lookup_small(n)

    def test_out_of_range_is_index_error(self) -> None:
        with pytest.raises(IndexError):
            lookup_small(94)

    def test_returns_fresh_values(self) -> None:
        """Changing a returned value does not change the table."""
        value = lookup_small(50)
        value += 1
        value *= 3
        assert lookup_small(50) == 12586269025
