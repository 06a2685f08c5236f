"""Result formatting for the command line."""

from __future__ import annotations

from gmpy2 import mpz

# Results with more digits than this are truncated unless verbose.
TRUNCATION_LIMIT = 100
# Digits shown at each end of a truncated result.
DISPLAY_EDGES = 25


def format_number_string(s: str) -> str:
    """Group a string of decimal digits by thousands: "1234567" -> "1,234,567"."""
    n = len(s)
    if n <= 3:
        return s
    first = n % 3 or 3
    groups = [s[:first]]
    groups.extend(s[i : i + 3] for i in range(first, n, 3))
    return ",".join(groups)


def format_duration(seconds: float) -> str:
    """Human-readable duration: "850µs", "12.35ms", "3.210s", "2m05.0s"."""
    if seconds < 1e-3:
        return f"{seconds * 1e6:.0f}µs"
    if seconds < 1.0:
        return f"{seconds * 1e3:.2f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes, rest = divmod(seconds, 60.0)
    return f"{int(minutes)}m{rest:04.1f}s"


def scientific_notation(digits: str) -> str:
    """Scientific notation built from the leading decimal digits."""
    mantissa = digits[0] + "." + digits[1:7].ljust(6, "0")
    return f"{mantissa}e+{len(digits) - 1:02d}"


def format_result(
    result: mpz, n: int, duration: float = 0.0, verbose: bool = False
) -> str:
    """Format a computed F(n) with its size details.

    Args:
        result: The computed value.
        n: Index that was computed.
        duration: Execution time in seconds; omitted when 0.
        verbose: Show every digit instead of a truncated value.

    Returns:
        Multi-line report.
    """
    lines = ["", "--- Result details ---"]

    if duration > 0:
        lines.append(f"Execution time      : {format_duration(duration)}")

    lines.append(f"Binary size         : {format_number_string(str(result.bit_length()))} bits")

    digits = str(result)
    num_digits = len(digits)
    lines.append(f"Decimal digits      : {format_number_string(str(num_digits))}")

    if num_digits > 6:
        lines.append(f"Scientific notation : {scientific_notation(digits)}")

    lines.append("")
    lines.append("--- Computed value ---")
    if verbose:
        lines.append(f"F({n}) =")
        lines.append(format_number_string(digits))
    elif num_digits > TRUNCATION_LIMIT:
        lines.append(
            f"F({n}) (truncated) = {digits[:DISPLAY_EDGES]}...{digits[-DISPLAY_EDGES:]}"
        )
        lines.append("(use -v or --verbose to print the full value)")
    else:
        lines.append(f"F({n}) = {format_number_string(digits)}")

    return "\n".join(lines)
