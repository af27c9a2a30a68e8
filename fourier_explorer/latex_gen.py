from __future__ import annotations

from typing import Callable, Optional

import sympy as sp

from .coefficients import CoefficientTable
from .series import Waveform


class LaTeXGenerator:
    """Converts the current partial sum -> display-math LaTeX string.

    Parameters
    ----------
    approx : bool
        When True (default) the coefficients of a custom series are rendered
        as rounded decimals with *decimals* digits after the point.
        When False, exact rational fractions are used.
    decimals : int
        Number of digits after the decimal point in approximate mode.
    max_terms : int
        Harmonics of a custom series written out before ``\\cdots``.
    """

    def __init__(self, approx: bool = True, decimals: int = 3, max_terms: int = 6) -> None:
        self.approx = approx
        self.decimals = max(0, min(10, int(decimals)))
        self.max_terms = max(1, int(max_terms))
        self._x = sp.Symbol("x", real=True)
        self._k = sp.Symbol("k", integer=True, positive=True)
        self._dispatch: dict[Waveform, Callable[[int, Optional[CoefficientTable]], str]] = {
            Waveform.SQUARE:   self._square,
            Waveform.TRIANGLE: self._triangle,
            Waveform.SAWTOOTH: self._sawtooth,
            Waveform.CUSTOM:   self._custom,
        }

    def reconfigure(self, approx: bool, decimals: int, max_terms: Optional[int] = None) -> None:
        """Update mode without rebuilding the dispatch table."""
        self.approx = approx
        self.decimals = max(0, min(10, int(decimals)))
        if max_terms is not None:
            self.max_terms = max(1, int(max_terms))

    def generate(self, waveform: Waveform, n: int,
                 table: Optional[CoefficientTable] = None) -> str:
        try:
            return self._dispatch[Waveform.parse(waveform)](int(n), table)
        except (KeyError, TypeError, AttributeError, ValueError, ArithmeticError):
            return self._fallback(waveform, n)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _n(self, v: float) -> sp.Expr:
        """Convert float to sympy number respecting approx mode."""
        if self.approx:
            return sp.Float(f"{v:.{self.decimals}f}")
        return sp.Rational(v).limit_denominator(1000)

    def _negligible(self, v: float) -> bool:
        if self.approx:
            return abs(v) < 0.5 * 10.0 ** (-self.decimals)
        return sp.Rational(v).limit_denominator(1000) == 0

    @staticmethod
    def _wrap(n: int, body: str) -> str:
        return f"$$S_{{{n}}}(x) = {body}$$"

    def _closed_form(self, n: int, prefactor: sp.Expr, summand: sp.Expr) -> str:
        series = sp.Sum(summand, (self._k, 1, n))
        return self._wrap(n, f"{sp.latex(prefactor)} {sp.latex(series)}")

    # ------------------------------------------------------------------
    # Per-waveform generators
    # ------------------------------------------------------------------

    def _square(self, n: int, table: Optional[CoefficientTable]) -> str:
        odd = 2 * self._k - 1
        return self._closed_form(n, 4 / sp.pi, sp.sin(odd * self._x) / odd)

    def _triangle(self, n: int, table: Optional[CoefficientTable]) -> str:
        odd = 2 * self._k - 1
        return self._closed_form(n, 8 / sp.pi ** 2, sp.cos(odd * self._x) / odd ** 2)

    def _sawtooth(self, n: int, table: Optional[CoefficientTable]) -> str:
        k = self._k
        return self._closed_form(n, 2 / sp.pi, (-1) ** (k + 1) * sp.sin(k * self._x) / k)

    def _custom(self, n: int, table: Optional[CoefficientTable]) -> str:
        """Write out the leading non-negligible harmonics of a numeric series."""
        if table is None:
            return self._wrap(n, "0")
        an, bn = table.truncated(n)
        x = self._x

        terms: list[sp.Expr] = []
        if not self._negligible(table.a0 / 2.0):
            terms.append(self._n(table.a0 / 2.0))
        shown = 0
        truncated = False
        for k, (a, b) in enumerate(zip(an, bn), start=1):
            harmonic: list[sp.Expr] = []
            if not self._negligible(float(a)):
                harmonic.append(self._n(float(a)) * sp.cos(k * x))
            if not self._negligible(float(b)):
                harmonic.append(self._n(float(b)) * sp.sin(k * x))
            if not harmonic:
                continue
            if shown == self.max_terms:
                truncated = True
                break
            terms.extend(harmonic)
            shown += 1

        if not terms:
            return self._wrap(n, "0")
        body = sp.latex(sp.Add(*terms))
        if truncated:
            body += r" + \cdots"
        return self._wrap(n, body)

    @staticmethod
    def _fallback(waveform: Waveform, n: int) -> str:
        name = getattr(waveform, "value", str(waveform))
        return rf"$$S_{{{n}}}(x) \approx \text{{{name} series}}$$"
