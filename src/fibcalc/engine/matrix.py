"""Matrix exponentiation Fibonacci engine.

F(n) is the top-left entry of Q^(n-1) with Q = [[1, 1], [1, 0]]. Every
power of Q is symmetric, so squaring the running power only needs four
products instead of eight.
"""

from __future__ import annotations

import logging

from gmpy2 import mpz

from fibcalc.engine.cancel import CancellationToken
from fibcalc.engine.parallel import execute_tasks, should_parallelize
from fibcalc.engine.pool import ObjectPool
from fibcalc.engine.progress import ProgressReporter, null_reporter

logger = logging.getLogger(__name__)


class Matrix:
    """2x2 matrix [[a, b], [c, d]] of big integers."""

    __slots__ = ("a", "b", "c", "d")

    def __init__(self, a: int = 0, b: int = 0, c: int = 0, d: int = 0) -> None:
        self.a = mpz(a)
        self.b = mpz(b)
        self.c = mpz(c)
        self.d = mpz(d)

    def set(self, other: Matrix) -> None:
        self.a, self.b, self.c, self.d = other.a, other.b, other.c, other.d

    def set_identity(self) -> None:
        self.a, self.b, self.c, self.d = mpz(1), mpz(0), mpz(0), mpz(1)

    def set_base_q(self) -> None:
        self.a, self.b, self.c, self.d = mpz(1), mpz(1), mpz(1), mpz(0)

    def __repr__(self) -> str:
        return f"Matrix([[{self.a}, {self.b}], [{self.c}, {self.d}]])"


class MatrixState:
    """Pooled scratch space: result, power and working matrices plus eight
    product slots."""

    __slots__ = ("res", "p", "temp", "t1", "t2", "t3", "t4", "t5", "t6", "t7", "t8")

    def __init__(self) -> None:
        self.res = Matrix()
        self.p = Matrix()
        self.temp = Matrix()
        self.reset()

    def reset(self) -> None:
        self.res.set_identity()
        self.p.set_base_q()
        self.temp.set_identity()
        zero = mpz(0)
        self.t1 = self.t2 = self.t3 = self.t4 = zero
        self.t5 = self.t6 = self.t7 = self.t8 = zero


STATE_POOL: ObjectPool[MatrixState] = ObjectPool(MatrixState)


def multiply_matrices(
    dest: Matrix, m1: Matrix, m2: Matrix, state: MatrixState, parallel: bool
) -> None:
    """Set ``dest`` to ``m1 x m2`` using the eight product slots of ``state``.

    ``dest`` must not alias ``m1`` or ``m2``.
    """

    def p1() -> None:
        state.t1 = m1.a * m2.a

    def p2() -> None:
        state.t2 = m1.b * m2.c

    def p3() -> None:
        state.t3 = m1.a * m2.b

    def p4() -> None:
        state.t4 = m1.b * m2.d

    def p5() -> None:
        state.t5 = m1.c * m2.a

    def p6() -> None:
        state.t6 = m1.d * m2.c

    def p7() -> None:
        state.t7 = m1.c * m2.b

    def p8() -> None:
        state.t8 = m1.d * m2.d

    execute_tasks([p1, p2, p3, p4, p5, p6, p7, p8], in_parallel=parallel)

    dest.a = state.t1 + state.t2
    dest.b = state.t3 + state.t4
    dest.c = state.t5 + state.t6
    dest.d = state.t7 + state.t8


def square_symmetric_matrix(
    dest: Matrix, mat: Matrix, state: MatrixState, parallel: bool
) -> None:
    """Set ``dest`` to ``mat^2`` assuming ``mat`` is symmetric (b == c).

    [[a, b], [b, d]]^2 = [[a^2 + b^2, b(a + d)], [b(a + d), b^2 + d^2]]
    """
    state.t5 = mat.a + mat.d

    def a_squared() -> None:
        state.t1 = mat.a * mat.a

    def b_squared() -> None:
        state.t2 = mat.b * mat.b

    def d_squared() -> None:
        state.t3 = mat.d * mat.d

    def b_times_a_plus_d() -> None:
        state.t4 = mat.b * state.t5

    execute_tasks([a_squared, b_squared, d_squared, b_times_a_plus_d], in_parallel=parallel)

    dest.a = state.t1 + state.t2
    dest.b = state.t4
    dest.c = state.t4
    dest.d = state.t2 + state.t3


class MatrixExponentiation:
    """O(log n) binary exponentiation of the Fibonacci matrix."""

    name = "Matrix Exponentiation (symmetric squaring, parallel, pooled state)"

    def calculate_core(
        self,
        n: int,
        threshold: int,
        cancel: CancellationToken | None = None,
        reporter: ProgressReporter | None = None,
    ) -> mpz:
        """Compute F(n) as the top-left entry of Q^(n-1).

        Raises:
            CalculationCancelled: If ``cancel`` fires before completion.
        """
        if n == 0:
            return mpz(0)

        report = reporter or null_reporter
        exponent = n - 1
        num_bits = exponent.bit_length()
        inv_num_bits = 1.0 / num_bits if num_bits else 0.0

        with STATE_POOL.checkout() as state:
            for i in range(num_bits):
                if cancel is not None and cancel.is_cancelled():
                    logger.debug("Matrix exponentiation cancelled at bit %d/%d", i, num_bits)
                    raise cancel.error()

                report(i * inv_num_bits)

                if (exponent >> i) & 1:
                    parallel = should_parallelize(state.res.a.bit_length(), threshold)
                    multiply_matrices(state.temp, state.res, state.p, state, parallel)
                    state.res, state.temp = state.temp, state.res

                # The last squaring would never be used.
                if i < num_bits - 1:
                    parallel = should_parallelize(state.p.a.bit_length(), threshold)
                    square_symmetric_matrix(state.temp, state.p, state, parallel)
                    state.p, state.temp = state.temp, state.p

            return mpz(state.res.a)
