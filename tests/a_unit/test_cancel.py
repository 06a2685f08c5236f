"""Unit tests for fibcalc.engine.cancel."""

from __future__ import annotations

import time

import pytest

from fibcalc.engine.cancel import CancellationToken
from fibcalc.errors import CalculationCancelled, CalculationTimeout


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_fresh_token(self) -> None:
        token = CancellationToken()
        assert token.is_cancelled() is False
        token.raise_if_cancelled()

    def test_cancel(self) -> None:
        token = CancellationToken()
        token.cancel("stop")
        assert token.is_cancelled() is True
        with pytest.raises(CalculationCancelled, match="stop"):
            token.raise_if_cancelled()

    def test_first_reason_wins(self) -> None:
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.error().reason == "first"

    def test_deadline(self) -> None:
        """An expired deadline reports a timeout."""
        token = CancellationToken(timeout=0.01)
        time.sleep(0.05)
        assert token.is_cancelled() is True
        assert token.timed_out is True
        err = token.error()
        assert isinstance(err, CalculationTimeout)
        assert err.timeout == 0.01

    def test_timeout_is_a_cancellation(self) -> None:
        assert issubclass(CalculationTimeout, CalculationCancelled)

    def test_parent_cancellation(self) -> None:
        """Cancelling the parent cancels the child with the parent's reason."""
        parent = CancellationToken()
        child = CancellationToken(timeout=60, parent=parent)
        assert child.is_cancelled() is False
        parent.cancel("received SIGINT")
        assert child.is_cancelled() is True
        err = child.error()
        assert not isinstance(err, CalculationTimeout)
        assert err.reason == "received SIGINT"
