"""Exception hierarchy for fibcalc."""

from __future__ import annotations


class FibCalcError(Exception):
    """Base class for all fibcalc errors."""


class CalculationCancelled(FibCalcError):
    """Raised when a calculation observes a triggered cancellation token.

    Cancellation is an expected outcome requested by the caller, not a
    defect. No partial result accompanies it.
    """

    def __init__(self, reason: str = "calculation cancelled") -> None:
        self.reason = reason
        super().__init__(reason)


class CalculationTimeout(CalculationCancelled):
    """Raised when the token was triggered by its deadline expiring."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        if timeout is None:
            reason = "deadline exceeded"
        else:
            reason = f"deadline exceeded ({timeout:g}s)"
        super().__init__(reason)


class ConfigError(FibCalcError, ValueError):
    """Invalid configuration (CLI flags or configuration file)."""


class LookupRangeError(IndexError):
    """Lookup table read outside of the precomputed range.

    Only reachable when bypassing the calculator's fast-path guard.
    """
