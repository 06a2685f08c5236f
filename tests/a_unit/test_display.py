"""Unit tests for fibcalc.harness.display."""

from __future__ import annotations

import pytest
from gmpy2 import mpz

from fibcalc.harness.display import (
    format_duration,
    format_number_string,
    format_result,
    scientific_notation,
)


class TestFormatNumberString:
    """Tests for format_number_string."""

    @pytest.mark.parametrize(
        "digits, expected",
        [
            ("", ""),
            ("7", "7"),
            ("123", "123"),
            ("1234", "1,234"),
            ("123456", "123,456"),
            ("1234567", "1,234,567"),
            ("12345678901", "12,345,678,901"),
        ],
    )
    def test_grouping(self, digits: str, expected: str) -> None:
        assert format_number_string(digits) == expected


class TestFormatDuration:
    """Tests for format_duration."""

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0.00005, "50µs"),
            (0.01234, "12.34ms"),
            (3.2104, "3.210s"),
            (125.0, "2m05.0s"),
        ],
    )
    def test_units(self, seconds: float, expected: str) -> None:
        assert format_duration(seconds) == expected


class TestFormatResult:
    """Tests for format_result."""

    def test_scientific_notation(self) -> None:
        assert scientific_notation("354224848179261915075") == "3.542248e+20"
        assert scientific_notation("1234567") == "1.234567e+06"

    def test_small_result(self) -> None:
        text = format_result(mpz(55), 10)
        assert "F(10) = 55" in text
        assert "Binary size         : 6 bits" in text
        assert "Scientific notation" not in text
        assert "Execution time" not in text

    def test_medium_result_grouped(self) -> None:
        text = format_result(mpz(354224848179261915075), 100, duration=0.5)
        assert "F(100) = 354,224,848,179,261,915,075" in text
        assert "Decimal digits      : 21" in text
        assert "Scientific notation : 3.542248e+20" in text
        assert "Execution time      : 500.00ms" in text

    def test_large_result_truncated(self) -> None:
        value = mpz(10) ** 150 + 7
        digits = str(value)
        text = format_result(value, 12345)
        assert f"F(12345) (truncated) = {digits[:25]}...{digits[-25:]}" in text
        assert "--verbose" in text

    def test_verbose_prints_everything(self) -> None:
        value = mpz(10) ** 150 + 7
        text = format_result(value, 12345, verbose=True)
        assert format_number_string(str(value)) in text
        assert "truncated" not in text
