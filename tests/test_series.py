import math

import numpy as np
import pytest

from fourier_explorer.coefficients import CoefficientTable, compute_coefficients
from fourier_explorer.series import SeriesEvaluator, Waveform, fold, partial_sum, reference_value


def test_square_first_term_at_quarter_period():
    assert partial_sum(math.pi / 2, "square", 1) == pytest.approx(4 / math.pi)


def test_first_terms_of_triangle_and_sawtooth():
    assert partial_sum(0.0, "triangle", 1) == pytest.approx(8 / math.pi ** 2)
    assert partial_sum(math.pi / 2, "sawtooth", 1) == pytest.approx(2 / math.pi)
    # second sawtooth term is -sin(2x)/2 * 2/pi, zero at pi/2
    assert partial_sum(math.pi / 2, "sawtooth", 2) == pytest.approx(2 / math.pi)


def test_square_reference_takes_only_two_values():
    xs = np.linspace(-50.0, 50.0, 2001)
    values = reference_value(xs, Waveform.SQUARE)
    assert set(np.unique(values)) <= {-1.0, 1.0}


def test_reference_shapes():
    assert reference_value(0.0, "triangle") == 1.0
    assert reference_value(math.pi, "triangle") == pytest.approx(-1.0)
    assert reference_value(math.pi / 2, "sawtooth") == pytest.approx(0.5)
    assert reference_value(0.5, "square") == 1.0
    assert reference_value(-0.5, "square") == -1.0


def test_reference_is_periodic_for_custom_expression():
    assert reference_value(2 * math.pi + 1.0, "custom", "x * x") == pytest.approx(1.0)
    assert reference_value(-2 * math.pi - 1.0, "custom", "x * x") == pytest.approx(1.0)


def test_fold_stays_within_one_period():
    xs = np.linspace(-1000.0, 1000.0, 5001)
    folded = fold(xs)
    assert np.all(folded <= math.pi)
    assert np.all(folded >= -math.pi)
    np.testing.assert_allclose(np.sin(folded), np.sin(xs), atol=1e-9)


@pytest.mark.parametrize("waveform", ["square", "triangle", "sawtooth"])
def test_partial_sums_are_two_pi_periodic(waveform):
    xs = np.linspace(-3.0, 3.0, 61)
    a = partial_sum(xs, waveform, 7)
    b = partial_sum(xs + 2 * math.pi, waveform, 7)
    np.testing.assert_allclose(a, b, atol=1e-9)


def test_scalar_input_returns_float():
    assert isinstance(partial_sum(0.3, "square", 3), float)
    assert isinstance(reference_value(0.3, "square"), float)


def test_custom_sum_uses_table():
    table = CoefficientTable(a0=2.0, an=np.array([1.0, 0.0]), bn=np.array([0.0, 0.5]))
    assert partial_sum(0.0, "custom", 2, table) == pytest.approx(2.0)
    x = math.pi / 4
    expected = 1.0 + math.cos(x) + 0.5 * math.sin(2 * x)
    assert partial_sum(x, "custom", 2, table) == pytest.approx(expected)
    assert partial_sum(x, "custom", 1, table) == pytest.approx(1.0 + math.cos(x))


def test_custom_sum_truncates_at_table_length():
    table = compute_coefficients("abs(x)")
    xs = np.linspace(-2.0, 2.0, 9)
    np.testing.assert_allclose(partial_sum(xs, "custom", 500, table),
                               partial_sum(xs, "custom", 100, table))


def test_custom_without_table_is_zero():
    assert partial_sum(1.0, "custom", 10) == 0.0


def test_unknown_waveform_rejected():
    with pytest.raises(ValueError):
        partial_sum(0.0, "noise", 3)
    with pytest.raises(ValueError):
        reference_value(0.0, "noise")


def test_evaluator_binds_waveform_and_table():
    table = compute_coefficients("sin(x)")
    ev = SeriesEvaluator("custom", "sin(x)", table)
    assert ev.reference(1.0) == pytest.approx(math.sin(1.0))
    assert ev.approximation(1.0, 5) == pytest.approx(math.sin(1.0), abs=0.02)


def test_square_reference_at_fold_edges():
    assert reference_value(-math.pi, "square") == -1.0
    assert reference_value(math.pi, "square") == 1.0
    assert fold(-math.pi) == -math.pi
    assert fold(math.pi) == math.pi
    assert reference_value(0.0, "square") == 1.0
