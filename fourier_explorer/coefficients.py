from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ._types import FloatArray
from .expression import compile_expression
from .settings import TWO_PI

logger = logging.getLogger(__name__)

N_MAX: int = 100
QUADRATURE_STEP: float = 0.02


@dataclass(frozen=True, slots=True)
class CoefficientTable:
    """Fourier coefficients of one expression; ``an[k-1]`` holds a_k."""

    a0: float
    an: FloatArray
    bn: FloatArray

    def __post_init__(self) -> None:
        if self.an.shape != self.bn.shape or self.an.ndim != 1:
            raise ValueError(
                f"an and bn must be 1-D arrays of equal length, got {self.an.shape} and {self.bn.shape}"
            )
        self.an.setflags(write=False)
        self.bn.setflags(write=False)

    def __len__(self) -> int:
        return int(self.an.shape[0])

    def truncated(self, n: int) -> tuple[FloatArray, FloatArray]:
        """Return ``(a_1..a_m, b_1..b_m)`` with ``m = min(n, len(self))``."""
        m = max(0, min(int(n), len(self)))
        return self.an[:m], self.bn[:m]


def sample_points(period: float = TWO_PI, step: float = QUADRATURE_STEP) -> FloatArray:
    """Left-rectangle nodes ``-L + i*step`` for every node below ``L``."""
    half = period / 2.0
    count = int(math.ceil(period / step))
    xs = -half + step * np.arange(count, dtype=np.float64)
    return xs[xs < half]


def compute_coefficients(
    expression: str,
    n_max: int = N_MAX,
    period: float = TWO_PI,
    step: float = QUADRATURE_STEP,
) -> CoefficientTable:
    """Riemann-sum estimate of the Fourier coefficients of *expression*.

    The expression is treated as one period on ``[-L, L)`` with
    ``L = period / 2``::

        a0 = step/L * sum f(x_i)
        an = step/L * sum f(x_i) cos(n pi x_i / L)
        bn = step/L * sum f(x_i) sin(n pi x_i / L)

    Points where the expression fails contribute 0.
    """
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    n_max = max(0, int(n_max))

    half = period / 2.0
    xs = sample_points(period, step)
    f = compile_expression(expression)
    values = np.fromiter((f(x) for x in xs), dtype=np.float64, count=len(xs))
    factor = step / half

    harmonics = np.arange(1, n_max + 1, dtype=np.float64)
    angles = np.outer(harmonics, xs) * (math.pi / half)
    with np.errstate(all="ignore"):
        a0 = float(np.sum(values)) * factor
        an = (np.cos(angles) @ values) * factor
        bn = (np.sin(angles) @ values) * factor

    return CoefficientTable(a0=a0, an=np.asarray(an, dtype=np.float64),
                            bn=np.asarray(bn, dtype=np.float64))


class CoefficientCache:
    """Keeps the table of the most recent ``(expression, period)`` key.

    A render asks for the table synchronously; the integration runs only
    when the key differs from the cached one.
    """

    def __init__(self, n_max: int = N_MAX, step: float = QUADRATURE_STEP) -> None:
        self._n_max = n_max
        self._step = step
        self._key: Optional[tuple[str, float]] = None
        self._table: Optional[CoefficientTable] = None
        self.recomputes = 0

    def get(self, expression: str, period: float = TWO_PI) -> CoefficientTable:
        key = (expression, float(period))
        if self._table is None or key != self._key:
            logger.debug("recomputing coefficients for %r (period %.4g)", expression, period)
            self._table = compute_coefficients(expression, self._n_max, period, self._step)
            self._key = key
            self.recomputes += 1
        return self._table

    def invalidate(self) -> None:
        self._key = None
        self._table = None

    def reconfigure(self, n_max: int, step: float) -> None:
        if (n_max, step) != (self._n_max, self._step):
            self._n_max = n_max
            self._step = step
            self.invalidate()
