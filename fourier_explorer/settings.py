from __future__ import annotations

import math
from dataclasses import dataclass

TWO_PI: float = 2.0 * math.pi


@dataclass(frozen=True, slots=True)
class Settings:
    base_x_range: tuple[float, float] = (-TWO_PI, TWO_PI)
    base_y_range: tuple[float, float] = (-2.2, 2.2)
    zoom_min: float = 0.1
    zoom_max: float = 50.0
    zoom_step: float = 0.1             # relative zoom change per wheel notch
    quadrature_step: float = 0.02      # data-space step of the coefficient sum
    max_terms: int = 100               # N_max of the coefficient table and of N
    discontinuity_threshold: float = 1.5
    reference_stride: int = 2          # pixel columns between reference samples
    error_stride: int = 5              # pixel columns between MSE samples
    autoplay_interval_ms: int = 50
    latex_approx: bool = True          # use decimal approximations in LaTeX output
    latex_decimals: int = 3            # digits after decimal point when approx is on
    latex_terms: int = 6               # harmonics written out for a custom series

    def __post_init__(self) -> None:
        x0, x1 = self.base_x_range
        y0, y1 = self.base_y_range
        if x0 >= x1:
            raise ValueError(f"base x range must be increasing, got {self.base_x_range}")
        if y0 >= y1:
            raise ValueError(f"base y range must be increasing, got {self.base_y_range}")
        if not (0 < self.zoom_min < 1.0 < self.zoom_max):
            raise ValueError(
                f"zoom bounds must satisfy 0 < min < 1 < max, got [{self.zoom_min}, {self.zoom_max}]"
            )
        if not (0 < self.zoom_step < 1):
            raise ValueError(f"zoom_step must be in (0, 1), got {self.zoom_step}")
        if not (1e-4 <= self.quadrature_step <= 0.5):
            raise ValueError(
                f"quadrature_step must be in [0.0001, 0.5], got {self.quadrature_step}"
            )
        if not (1 <= self.max_terms <= 1000):
            raise ValueError(f"max_terms must be in [1, 1000], got {self.max_terms}")
        if self.discontinuity_threshold <= 0:
            raise ValueError(
                f"discontinuity_threshold must be positive, got {self.discontinuity_threshold}"
            )
        if self.reference_stride < 1 or self.error_stride < 1:
            raise ValueError("sampling strides must be at least 1")
        if self.autoplay_interval_ms < 1:
            raise ValueError(
                f"autoplay_interval_ms must be positive, got {self.autoplay_interval_ms}"
            )
        if not (0 <= self.latex_decimals <= 10):
            raise ValueError(f"latex_decimals must be in [0, 10], got {self.latex_decimals}")
        if self.latex_terms < 1:
            raise ValueError(f"latex_terms must be at least 1, got {self.latex_terms}")

    @property
    def base_width(self) -> float:
        return self.base_x_range[1] - self.base_x_range[0]

    @property
    def base_height(self) -> float:
        return self.base_y_range[1] - self.base_y_range[0]

    @property
    def base_center(self) -> tuple[float, float]:
        return (
            (self.base_x_range[0] + self.base_x_range[1]) / 2.0,
            (self.base_y_range[0] + self.base_y_range[1]) / 2.0,
        )


DEFAULT_SETTINGS = Settings()
