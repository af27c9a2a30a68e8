import math

import numpy as np
import pytest
from scipy.integrate import quad

from fourier_explorer.coefficients import (
    CoefficientCache,
    CoefficientTable,
    compute_coefficients,
    sample_points,
)


def _fourier_reference(f, n):
    an, _ = quad(lambda x: f(x) * math.cos(n * x), -math.pi, math.pi)
    bn, _ = quad(lambda x: f(x) * math.sin(n * x), -math.pi, math.pi)
    return an / math.pi, bn / math.pi


def test_sample_points_cover_one_period():
    xs = sample_points(2 * math.pi, 0.02)
    assert xs[0] == pytest.approx(-math.pi)
    assert np.all(xs < math.pi)
    assert len(xs) == 315
    np.testing.assert_allclose(np.diff(xs), 0.02)


def test_parabola_constant_term():
    table = compute_coefficients("x*x")
    assert table.a0 == pytest.approx(2 * math.pi ** 2 / 3, abs=0.1)


def test_parabola_harmonics_match_quadrature():
    table = compute_coefficients("x*x")
    for n in (1, 2, 3):
        a_ref, b_ref = _fourier_reference(lambda x: x * x, n)
        assert table.an[n - 1] == pytest.approx(a_ref, abs=0.1)
        assert table.bn[n - 1] == pytest.approx(b_ref, abs=0.05)


def test_sine_has_single_harmonic():
    table = compute_coefficients("sin(x)")
    assert table.bn[0] == pytest.approx(1.0, abs=0.01)
    assert table.a0 == pytest.approx(0.0, abs=0.01)
    assert np.max(np.abs(table.bn[1:10])) < 0.02


def test_table_always_has_full_length():
    table = compute_coefficients("abs(x)")
    assert len(table) == 100
    an, bn = table.truncated(3)
    assert len(an) == len(bn) == 3
    an, bn = table.truncated(500)
    assert len(an) == 100


def test_failing_expression_degrades_to_zero():
    for text in ("1/0", "undefinedSymbol(x)", "sin("):
        table = compute_coefficients(text)
        assert table.a0 == 0.0
        assert not np.any(table.an)
        assert not np.any(table.bn)


def test_table_is_read_only():
    table = compute_coefficients("x")
    with pytest.raises(ValueError):
        table.an[0] = 1.0


def test_table_rejects_mismatched_arrays():
    with pytest.raises(ValueError):
        CoefficientTable(a0=0.0, an=np.zeros(3), bn=np.zeros(4))


def test_invalid_period_rejected():
    with pytest.raises(ValueError):
        compute_coefficients("x", period=0.0)


def test_cache_recomputes_only_on_key_change():
    cache = CoefficientCache()
    first = cache.get("x*x")
    assert cache.get("x*x") is first
    assert cache.recomputes == 1

    second = cache.get("abs(x)")
    assert second is not first
    assert cache.recomputes == 2

    cache.invalidate()
    cache.get("abs(x)")
    assert cache.recomputes == 3


def test_cache_reconfigure_invalidates():
    cache = CoefficientCache()
    cache.get("x")
    cache.reconfigure(10, 0.05)
    table = cache.get("x")
    assert len(table) == 10
    assert cache.recomputes == 2
