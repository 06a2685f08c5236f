"""Fast Doubling Fibonacci engine.

Walks the bits of ``n`` from the most significant one down, keeping the
pair (F(k), F(k+1)) and applying

    F(2k)   = F(k) * (2*F(k+1) - F(k))
    F(2k+1) = F(k+1)^2 + F(k)^2

at every bit, plus one plain Fibonacci step when the bit is set.
"""

from __future__ import annotations

import logging

from gmpy2 import mpz

from fibcalc.engine.cancel import CancellationToken
from fibcalc.engine.parallel import execute_dispatched_and_local, should_parallelize
from fibcalc.engine.pool import ObjectPool
from fibcalc.engine.progress import ProgressReporter, null_reporter

logger = logging.getLogger(__name__)


class CalculationState:
    """Scratch integers for one Fast Doubling run.

    ``f_k``/``f_k1`` hold F(k) and F(k+1); ``t1``..``t4`` are temporaries
    that are always written before being read within an iteration.
    """

    __slots__ = ("f_k", "f_k1", "t1", "t2", "t3", "t4")

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.f_k = mpz(0)
        self.f_k1 = mpz(1)
        self.t1 = mpz(0)
        self.t2 = mpz(0)
        self.t3 = mpz(0)
        self.t4 = mpz(0)


STATE_POOL: ObjectPool[CalculationState] = ObjectPool(CalculationState)


def multiply_sequential(s: CalculationState) -> None:
    s.t3 = s.f_k * s.t2
    s.t1 = s.f_k1 * s.f_k1
    s.t4 = s.f_k * s.f_k


def parallel_multiply3(s: CalculationState) -> None:
    """Compute the three doubling products concurrently.

    ``s.t2`` must already hold ``2*F(k+1) - F(k)``. Two products run on
    fresh threads, the third on the calling thread.
    """

    def product_a() -> None:
        s.t3 = s.f_k * s.t2

    def product_b() -> None:
        s.t1 = s.f_k1 * s.f_k1

    def product_c() -> None:
        s.t4 = s.f_k * s.f_k

    execute_dispatched_and_local([product_a, product_b], product_c, in_parallel=True)


class FastDoubling:
    """O(log n) Fast Doubling with parallel multiplications."""

    name = "Fast Doubling (O(log n), parallel, pooled state)"

    def calculate_core(
        self,
        n: int,
        threshold: int,
        cancel: CancellationToken | None = None,
        reporter: ProgressReporter | None = None,
    ) -> mpz:
        """Compute F(n).

        Args:
            n: Index, non-negative.
            threshold: Bit length of F(k+1) above which the three products
                are computed in parallel.
            cancel: Token polled at the start of every iteration.
            reporter: Receives the fraction of bits processed.

        Returns:
            F(n) as a new ``mpz``.

        Raises:
            CalculationCancelled: If ``cancel`` fires before completion.
        """
        if n <= 2:
            return mpz(0 if n == 0 else 1)

        report = reporter or null_reporter
        num_bits = n.bit_length()
        inv_num_bits = 1.0 / num_bits

        with STATE_POOL.checkout() as s:
            for i in range(num_bits - 1, -1, -1):
                if cancel is not None and cancel.is_cancelled():
                    logger.debug("Fast doubling cancelled at bit %d/%d", num_bits - 1 - i, num_bits)
                    raise cancel.error()

                if i < num_bits - 1:
                    report((num_bits - 1 - i) * inv_num_bits)

                s.t2 = (s.f_k1 << 1) - s.f_k

                if should_parallelize(s.f_k1.bit_length(), threshold):
                    parallel_multiply3(s)
                else:
                    multiply_sequential(s)

                s.f_k = s.t3
                s.f_k1 = s.t1 + s.t4

                if (n >> i) & 1:
                    s.t1 = s.f_k1
                    s.f_k1 = s.f_k1 + s.f_k
                    s.f_k = s.t1

            return mpz(s.f_k)
