from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple

from .settings import DEFAULT_SETTINGS, Settings


class Window(NamedTuple):
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min


@dataclass(frozen=True, slots=True)
class ViewportState:
    zoom: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def __post_init__(self) -> None:
        if not self.zoom > 0:
            raise ValueError(f"zoom must be positive, got {self.zoom}")

    def zoomed(self, pointer_ratio: float, delta_sign: int,
               settings: Settings = DEFAULT_SETTINGS) -> "ViewportState":
        new_zoom, dx = zoom_at(pointer_ratio, delta_sign, self.zoom, settings)
        return replace(self, zoom=new_zoom, offset_x=self.offset_x + dx)

    def panned(self, dx_px: float, dy_px: float, canvas_width: float, canvas_height: float,
               settings: Settings = DEFAULT_SETTINGS) -> "ViewportState":
        dx, dy = pan_by(dx_px, dy_px, canvas_width, canvas_height, self.zoom, settings)
        return replace(self, offset_x=self.offset_x + dx, offset_y=self.offset_y + dy)

    @staticmethod
    def reset() -> "ViewportState":
        return ViewportState()


def clamp_zoom(zoom: float, settings: Settings = DEFAULT_SETTINGS) -> float:
    return max(settings.zoom_min, min(settings.zoom_max, zoom))


def zoom_at(pointer_ratio: float, delta_sign: int, current_zoom: float,
            settings: Settings = DEFAULT_SETTINGS) -> tuple[float, float]:
    """Zoom one notch about the pointer.

    Returns ``(new_zoom, offset_x_delta)``; the delta keeps the data point
    under ``pointer_ratio`` (0 = left edge, 1 = right edge) in place.
    """
    ratio = max(0.0, min(1.0, float(pointer_ratio)))
    direction = 1 if delta_sign > 0 else -1 if delta_sign < 0 else 0
    new_zoom = clamp_zoom(current_zoom * (1.0 + settings.zoom_step * direction), settings)
    if new_zoom == current_zoom:
        return current_zoom, 0.0
    adjustment = (ratio - 0.5) * settings.base_width * (1.0 / current_zoom - 1.0 / new_zoom)
    return new_zoom, adjustment


def pan_by(dx_px: float, dy_px: float, canvas_width: float, canvas_height: float,
           zoom: float, settings: Settings = DEFAULT_SETTINGS) -> tuple[float, float]:
    """Data-space offset change for a drag of ``(dx_px, dy_px)`` pixels.

    The content follows the pointer; pixel y grows downward, data y upward.
    """
    if canvas_width <= 0 or canvas_height <= 0:
        return 0.0, 0.0
    dx = -(dx_px / canvas_width) * (settings.base_width / zoom)
    dy = (dy_px / canvas_height) * (settings.base_height / zoom)
    return dx, dy


def visible_window(state: ViewportState, settings: Settings = DEFAULT_SETTINGS) -> Window:
    width = settings.base_width / state.zoom
    height = settings.base_height / state.zoom
    cx, cy = settings.base_center
    cx += state.offset_x
    cy += state.offset_y
    return Window(cx - width / 2.0, cx + width / 2.0, cy - height / 2.0, cy + height / 2.0)


def to_pixel(window: Window, canvas_width: float, canvas_height: float,
             x: float, y: float) -> tuple[float, float]:
    px = (x - window.x_min) / window.width * canvas_width
    py = canvas_height - (y - window.y_min) / window.height * canvas_height
    return px, py


def to_data(window: Window, canvas_width: float, canvas_height: float,
            px: float, py: float) -> tuple[float, float]:
    x = window.x_min + px / canvas_width * window.width
    y = window.y_min + (canvas_height - py) / canvas_height * window.height
    return x, y
