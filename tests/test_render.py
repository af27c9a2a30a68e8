import math

import numpy as np
import pytest

from fourier_explorer.coefficients import compute_coefficients
from fourier_explorer.render import join_segments, render_frame, split_at_jumps
from fourier_explorer.series import SeriesEvaluator
from fourier_explorer.settings import Settings
from fourier_explorer.viewport import ViewportState


def _frame(waveform, n, width=800, height=400, viewport=None, expression=""):
    table = compute_coefficients(expression) if waveform == "custom" else None
    evaluator = SeriesEvaluator(waveform, expression, table)
    return render_frame(width, height, viewport or ViewportState(), evaluator, n)


def test_square_reference_breaks_at_discontinuities():
    frame = _frame("square", 3)
    assert len(frame.reference_segments) >= 4
    for xs, ys in frame.reference_segments:
        assert len(xs) == len(ys)
        if len(ys) > 1:
            assert np.max(np.abs(np.diff(ys))) <= 1.5


def test_triangle_reference_is_one_segment():
    frame = _frame("triangle", 3)
    assert len(frame.reference_segments) == 1
    xs, _ = frame.reference_segments[0]
    assert len(xs) == 400


def test_approximation_samples_every_column():
    frame = _frame("sawtooth", 10, width=640)
    xs, ys = frame.approximation
    assert len(xs) == len(ys) == 640
    assert xs[0] == pytest.approx(frame.window.x_min)
    assert np.all(np.isfinite(ys))


def test_error_uses_every_fifth_column():
    frame = _frame("square", 5, width=800)
    assert frame.error_samples == 160
    frame = _frame("square", 5, width=803)
    assert frame.error_samples == 161


@pytest.mark.parametrize("waveform", ["square", "triangle", "sawtooth"])
def test_error_shrinks_as_terms_grow(waveform):
    errors = [_frame(waveform, n).mse for n in (1, 5, 40)]
    assert errors[0] > errors[1] > errors[2]


def test_custom_sine_is_reproduced():
    frame = _frame("custom", 3, expression="sin(x)")
    assert frame.mse < 1e-3


def test_grid_one_line_per_unit():
    frame = _frame("square", 1)
    assert [g.label for g in frame.vertical_grid] == ["-2π", "-1π", "0π", "1π", "2π"]
    assert [g.value for g in frame.horizontal_grid] == [-3.0, -2.0, -1.0, 0.0, 1.0, 2.0, 3.0]
    zoomed = _frame("square", 1, viewport=ViewportState(zoom=0.5))
    assert len(zoomed.vertical_grid) == 9


def test_grid_labels_dropped_far_from_origin():
    frame = _frame("square", 1, viewport=ViewportState(offset_x=200.0))
    assert frame.vertical_grid
    assert all(g.label is None for g in frame.vertical_grid)


def test_axes_only_when_visible():
    frame = _frame("square", 1)
    assert frame.show_x_axis and frame.show_y_axis
    frame = _frame("square", 1, viewport=ViewportState(offset_x=100.0))
    assert frame.show_x_axis
    assert not frame.show_y_axis
    frame = _frame("square", 1, viewport=ViewportState(offset_y=-50.0))
    assert not frame.show_x_axis


def test_empty_canvas_gives_empty_frame():
    frame = _frame("square", 5, width=0)
    assert frame.reference_segments == ()
    assert frame.mse == 0.0
    assert len(frame.approximation[0]) == 0


def test_threshold_is_configurable():
    evaluator = SeriesEvaluator("square")
    frame = render_frame(800, 400, ViewportState(), evaluator, 3,
                         Settings(discontinuity_threshold=5.0))
    assert len(frame.reference_segments) == 1


def test_pixel_views_stay_on_canvas():
    frame = _frame("triangle", 4, width=500, height=300)
    px, py = frame.approximation_pixels()
    assert np.all((px >= 0) & (px < 500))
    assert np.all((py >= 0) & (py <= 300))
    for sx, sy in frame.reference_pixels():
        assert np.all((sx >= 0) & (sx < 500))


def test_join_segments_inserts_gaps():
    xs = np.arange(6, dtype=float)
    ys = np.array([0.0, 0.1, 2.0, 2.1, -1.0, -1.1])
    segments = split_at_jumps(xs, ys, 1.5)
    assert len(segments) == 3
    jx, jy = join_segments(segments)
    assert len(jx) == 8
    assert np.count_nonzero(np.isnan(jy)) == 2
    assert join_segments(())[0].size == 0


def test_window_matches_viewport():
    frame = _frame("square", 1, viewport=ViewportState(zoom=2.0))
    assert frame.window.x_min == pytest.approx(-math.pi)
    assert frame.window.x_max == pytest.approx(math.pi)


def test_jump_of_exactly_threshold_does_not_split():
    xs = np.arange(3, dtype=np.float64)
    segments = split_at_jumps(xs, np.array([0.0, 1.5, 3.0]), 1.5)
    assert len(segments) == 1
    np.testing.assert_array_equal(segments[0][1], [0.0, 1.5, 3.0])


def test_jump_just_over_threshold_splits():
    xs = np.arange(3, dtype=np.float64)
    segments = split_at_jumps(xs, np.array([0.0, 1.5, 3.0 + 1e-9]), 1.5)
    assert [len(sx) for sx, _ in segments] == [2, 1]
    np.testing.assert_array_equal(segments[1][0], [2.0])
