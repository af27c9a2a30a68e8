from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Union

import numpy as np

from ._types import FloatArray
from .coefficients import CoefficientTable
from .expression import evaluate_array
from .settings import TWO_PI

ArrayLike = Union[float, FloatArray]


class Waveform(str, Enum):
    SQUARE = "square"
    TRIANGLE = "triangle"
    SAWTOOTH = "sawtooth"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, tag: Union[str, "Waveform"]) -> "Waveform":
        try:
            return cls(tag)
        except ValueError:
            raise ValueError(
                f"Unknown waveform {tag!r}; expected one of {[w.value for w in cls]}"
            ) from None


def fold(x: ArrayLike) -> FloatArray:
    """Reduce *x* into one period around zero.

    Uses a truncating remainder by 2 pi followed by a single shift, so the
    result lies in ``[-pi, pi]`` with ``pi`` kept for positive inputs.
    """
    xs = np.fmod(np.asarray(x, dtype=np.float64), TWO_PI)
    xs = np.where(xs > math.pi, xs - TWO_PI, xs)
    return np.where(xs < -math.pi, xs + TWO_PI, xs)


def _as_result(values: FloatArray, x: ArrayLike) -> ArrayLike:
    if np.ndim(x) == 0:
        return float(values)
    return values


def reference_value(x: ArrayLike, waveform: Union[str, Waveform],
                    expression: str = "") -> ArrayLike:
    """Exact periodic value of the selected waveform at *x*."""
    wf = Waveform.parse(waveform)
    xp = fold(x)
    if wf is Waveform.SQUARE:
        values = np.where(xp >= 0, 1.0, -1.0)
    elif wf is Waveform.TRIANGLE:
        values = 1.0 - 2.0 * np.abs(xp) / math.pi
    elif wf is Waveform.SAWTOOTH:
        values = xp / math.pi
    else:
        values = evaluate_array(expression, xp)
    return _as_result(np.asarray(values, dtype=np.float64), x)


def partial_sum(x: ArrayLike, waveform: Union[str, Waveform], n: int,
                table: Optional[CoefficientTable] = None) -> ArrayLike:
    """Fourier series of the selected waveform truncated after *n* terms.

    For the custom waveform the sum stops at ``min(n, len(table))``; without a
    table it is identically zero.
    """
    wf = Waveform.parse(waveform)
    xs = np.asarray(x, dtype=np.float64)
    n = max(0, int(n))

    if wf is Waveform.CUSTOM:
        if table is None:
            return _as_result(np.zeros_like(xs), x)
        an, bn = table.truncated(n)
        k = np.arange(1, len(an) + 1, dtype=np.float64)
        phase = np.multiply.outer(xs, k)
        values = table.a0 / 2.0 + np.cos(phase) @ an + np.sin(phase) @ bn
        return _as_result(np.asarray(values, dtype=np.float64), x)

    k = np.arange(1, n + 1, dtype=np.float64)
    if wf is Waveform.SQUARE:
        odd = 2.0 * k - 1.0
        values = (4.0 / math.pi) * (np.sin(np.multiply.outer(xs, odd)) @ (1.0 / odd))
    elif wf is Waveform.TRIANGLE:
        odd = 2.0 * k - 1.0
        values = (8.0 / math.pi ** 2) * (np.cos(np.multiply.outer(xs, odd)) @ (1.0 / odd ** 2))
    else:
        signs = np.where(k % 2 == 0, -1.0, 1.0)
        values = (2.0 / math.pi) * (np.sin(np.multiply.outer(xs, k)) @ (signs / k))
    return _as_result(np.asarray(values, dtype=np.float64), x)


class SeriesEvaluator:
    """Binds a waveform, an expression and its coefficient table."""

    def __init__(self, waveform: Union[str, Waveform], expression: str = "",
                 table: Optional[CoefficientTable] = None) -> None:
        self.waveform = Waveform.parse(waveform)
        self.expression = expression
        self.table = table

    def reference(self, x: ArrayLike) -> ArrayLike:
        return reference_value(x, self.waveform, self.expression)

    def approximation(self, x: ArrayLike, n: int) -> ArrayLike:
        return partial_sum(x, self.waveform, n, self.table)
