"""
Per-frame sampling of the reference curve and the partial sum.

A frame walks the pixel columns of the canvas once:

* the reference curve is sampled every ``reference_stride`` columns and split
  into separate segments wherever adjacent samples differ by more than
  ``discontinuity_threshold`` (no vertical line across a jump);
* the approximation is sampled at every column as a single path;
* the mean squared error uses every ``error_stride``-th column only.

Grid lines sit at integer multiples of pi along x and at integers along y,
one line per unit whatever the zoom.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from ._types import FloatArray
from .series import SeriesEvaluator
from .settings import DEFAULT_SETTINGS, Settings
from .viewport import ViewportState, Window, to_pixel, visible_window

Polyline = tuple[FloatArray, FloatArray]

LABEL_LIMIT: float = 100.0


@dataclass(frozen=True, slots=True)
class GridLine:
    value: float
    label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Frame:
    window: Window
    width: int
    height: int
    reference_segments: tuple[Polyline, ...]
    approximation: Polyline
    vertical_grid: tuple[GridLine, ...]
    horizontal_grid: tuple[GridLine, ...]
    show_x_axis: bool
    show_y_axis: bool
    mse: float
    error_samples: int = 0
    n_terms: int = 0

    def to_pixel(self, x: Any, y: Any) -> tuple[Any, Any]:
        return to_pixel(self.window, self.width, self.height, x, y)

    def reference_polyline(self) -> Polyline:
        """All reference segments joined with NaN separators."""
        return join_segments(self.reference_segments)

    def reference_pixels(self) -> list[Polyline]:
        pixels: list[Polyline] = []
        for xs, ys in self.reference_segments:
            px, py = self.to_pixel(xs, ys)
            pixels.append((np.asarray(px), np.asarray(py)))
        return pixels

    def approximation_pixels(self) -> Polyline:
        px, py = self.to_pixel(*self.approximation)
        return np.asarray(px), np.asarray(py)


def join_segments(segments: tuple[Polyline, ...]) -> Polyline:
    xs: list[FloatArray] = []
    ys: list[FloatArray] = []
    gap = np.array([np.nan])
    for sx, sy in segments:
        if xs:
            xs.append(gap)
            ys.append(gap)
        xs.append(sx)
        ys.append(sy)
    if not xs:
        return np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64)
    return np.concatenate(xs), np.concatenate(ys)


def column_positions(window: Window, width: int, stride: int = 1) -> FloatArray:
    """Data-space x of every *stride*-th pixel column, starting at column 0."""
    px = np.arange(0, width, stride, dtype=np.float64)
    return window.x_min + (px / width) * window.width


def split_at_jumps(xs: FloatArray, ys: FloatArray, threshold: float) -> tuple[Polyline, ...]:
    if len(xs) == 0:
        return ()
    with np.errstate(invalid="ignore"):
        jumps = np.flatnonzero(np.abs(np.diff(ys)) > threshold) + 1
    return tuple(zip(np.split(xs, jumps), np.split(ys, jumps)))


def grid_lines(window: Window) -> tuple[tuple[GridLine, ...], tuple[GridLine, ...]]:
    vertical = tuple(
        GridLine(i * math.pi, f"{i}π" if abs(i * math.pi) < LABEL_LIMIT else None)
        for i in range(math.floor(window.x_min / math.pi), math.ceil(window.x_max / math.pi) + 1)
    )
    horizontal = tuple(
        GridLine(float(j), str(j))
        for j in range(math.floor(window.y_min), math.ceil(window.y_max) + 1)
    )
    return vertical, horizontal


def mean_squared_error(evaluator: SeriesEvaluator, xs: FloatArray,
                       approximation: FloatArray, stride: int) -> tuple[float, int]:
    """MSE between reference and approximation at every *stride*-th sample."""
    sampled_x = xs[::stride]
    if len(sampled_x) == 0:
        return 0.0, 0
    reference = np.asarray(evaluator.reference(sampled_x), dtype=np.float64)
    with np.errstate(all="ignore"):
        err = float(np.mean((reference - approximation[::stride]) ** 2))
    return err, len(sampled_x)


def render_frame(
    width: int,
    height: int,
    viewport: ViewportState,
    evaluator: SeriesEvaluator,
    n_terms: int,
    settings: Settings = DEFAULT_SETTINGS,
) -> Frame:
    width = max(0, int(width))
    height = max(0, int(height))
    window = visible_window(viewport, settings)
    vertical, horizontal = grid_lines(window)

    if width == 0 or height == 0:
        empty = np.empty(0, dtype=np.float64)
        return Frame(window, width, height, (), (empty, empty), vertical, horizontal,
                     False, False, 0.0, 0, n_terms)

    x_zero_px, y_zero_px = to_pixel(window, width, height, 0.0, 0.0)
    show_x_axis = 0.0 <= y_zero_px <= height
    show_y_axis = 0.0 <= x_zero_px <= width

    ref_x = column_positions(window, width, settings.reference_stride)
    ref_y = np.asarray(evaluator.reference(ref_x), dtype=np.float64)
    segments = split_at_jumps(ref_x, ref_y, settings.discontinuity_threshold)

    app_x = column_positions(window, width)
    app_y = np.asarray(evaluator.approximation(app_x, n_terms), dtype=np.float64)

    mse, samples = mean_squared_error(evaluator, app_x, app_y, settings.error_stride)

    return Frame(
        window=window,
        width=width,
        height=height,
        reference_segments=segments,
        approximation=(app_x, app_y),
        vertical_grid=vertical,
        horizontal_grid=horizontal,
        show_x_axis=show_x_axis,
        show_y_axis=show_y_axis,
        mse=mse,
        error_samples=samples,
        n_terms=n_terms,
    )
