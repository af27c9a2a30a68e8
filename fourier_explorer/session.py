from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

from .coefficients import CoefficientCache, CoefficientTable
from .expression import validate_expression
from .latex_gen import LaTeXGenerator
from .render import Frame, render_frame
from .series import SeriesEvaluator, Waveform
from .settings import DEFAULT_SETTINGS, TWO_PI, Settings
from .viewport import ViewportState, Window, visible_window

logger = logging.getLogger(__name__)

MIN_TERMS: int = 1
DEFAULT_TERMS: int = 5
DEFAULT_EXPRESSION: str = "x * x"
SLIDER_MAX: float = 100.0


@dataclass(frozen=True, slots=True)
class Preset:
    label: str
    expression: str
    description: str


PRESETS: tuple[Preset, ...] = (
    Preset("Full-wave rectifier", "abs(sin(x))", "absolute sine"),
    Preset("Half-wave rectifier", "max(sin(x), 0)", "negative half cut off"),
    Preset("Parabola", "x * x", "quadratic"),
    Preset("Absolute value", "abs(x)", "V-shaped wave"),
    Preset("Two tones", "sin(x) + sin(2*x)", "fundamental plus octave"),
    Preset("Gaussian pulse", "pow(E, -x*x)", "bell curve"),
)


# ---------------------------------------------------------------------------
# Term count helpers
# ---------------------------------------------------------------------------

def clamp_terms(n: float, max_terms: int = DEFAULT_SETTINGS.max_terms) -> int:
    if not math.isfinite(n):
        return MIN_TERMS
    return int(max(MIN_TERMS, min(max_terms, round(n))))


def slider_to_terms(position: float, max_terms: int = DEFAULT_SETTINGS.max_terms) -> int:
    """Quadratic slider: fine steps for small N, coarse near the top."""
    s = max(0.0, min(SLIDER_MAX, float(position)))
    return clamp_terms(1 + (max_terms - 1) * (s / SLIDER_MAX) ** 2, max_terms)


def terms_to_slider(n: int, max_terms: int = DEFAULT_SETTINGS.max_terms) -> float:
    if max_terms <= MIN_TERMS:
        return SLIDER_MAX
    n = max(MIN_TERMS, min(max_terms, n))
    return SLIDER_MAX * math.sqrt((n - 1) / (max_terms - 1))


def autoplay_step(n: int, max_terms: int = DEFAULT_SETTINGS.max_terms) -> int:
    """Next N of the autoplay animation; wraps to 1 after the last term."""
    if n >= max_terms:
        return MIN_TERMS
    if n >= 70:
        step = 3
    elif n >= 30:
        step = 2
    else:
        step = 1
    return min(max_terms, n + step)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class FourierSession:
    """All interactive state of one explorer window.

    The shell calls the setters from its event handlers and the autoplay
    timer; ``render`` fetches the coefficient table synchronously before
    sampling, so a frame never reads a stale table.
    """

    def __init__(self, settings: Settings = DEFAULT_SETTINGS) -> None:
        self._settings = settings
        self.waveform = Waveform.SQUARE
        self.expression = DEFAULT_EXPRESSION
        self.n_terms = DEFAULT_TERMS
        self.playing = False
        self.viewport = ViewportState()
        self.last_mse = 0.0
        self._cache = CoefficientCache(settings.max_terms, settings.quadrature_step)
        self._latex_gen = LaTeXGenerator(
            approx=settings.latex_approx,
            decimals=settings.latex_decimals,
            max_terms=settings.latex_terms,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    def reconfigure(self, settings: Settings) -> None:
        self._settings = settings
        self._cache.reconfigure(settings.max_terms, settings.quadrature_step)
        self._latex_gen.reconfigure(settings.latex_approx, settings.latex_decimals,
                                    settings.latex_terms)
        self.n_terms = clamp_terms(self.n_terms, settings.max_terms)
        self.viewport = ViewportState(
            zoom=max(settings.zoom_min, min(settings.zoom_max, self.viewport.zoom)),
            offset_x=self.viewport.offset_x,
            offset_y=self.viewport.offset_y,
        )

    # -- waveform / expression ------------------------------------------

    def set_waveform(self, tag: Union[str, Waveform]) -> None:
        waveform = Waveform.parse(tag)
        if waveform is not self.waveform:
            logger.info("waveform -> %s", waveform.value)
        self.waveform = waveform

    def set_expression(self, text: str) -> Optional[str]:
        """Store *text*; return its parse error (it is kept either way)."""
        self.expression = text
        error = validate_expression(text)
        if error is not None:
            logger.debug("expression %r does not parse: %s", text, error)
        else:
            logger.info("expression -> %r", text)
        return error

    def apply_preset(self, preset: Preset) -> None:
        self.set_expression(preset.expression)
        self.set_waveform(Waveform.CUSTOM)

    def coefficients(self) -> Optional[CoefficientTable]:
        if self.waveform is not Waveform.CUSTOM:
            return None
        return self._cache.get(self.expression, TWO_PI)

    def evaluator(self) -> SeriesEvaluator:
        return SeriesEvaluator(self.waveform, self.expression, self.coefficients())

    # -- term count / autoplay ------------------------------------------

    def set_term_count(self, n: float) -> int:
        self.n_terms = clamp_terms(n, self._settings.max_terms)
        return self.n_terms

    def set_slider_position(self, position: float) -> int:
        return self.set_term_count(slider_to_terms(position, self._settings.max_terms))

    @property
    def slider_position(self) -> float:
        return terms_to_slider(self.n_terms, self._settings.max_terms)

    def set_playing(self, playing: bool) -> None:
        self.playing = bool(playing)

    def toggle_playing(self) -> bool:
        self.playing = not self.playing
        return self.playing

    def tick(self) -> int:
        """Advance one autoplay step; no-op while paused."""
        if self.playing:
            self.n_terms = autoplay_step(self.n_terms, self._settings.max_terms)
        return self.n_terms

    def reset_terms(self) -> None:
        self.playing = False
        self.n_terms = MIN_TERMS

    # -- viewport ---------------------------------------------------------

    def reset_view(self) -> None:
        self.viewport = ViewportState.reset()

    def zoom_at(self, pointer_ratio: float, delta_sign: int) -> ViewportState:
        self.viewport = self.viewport.zoomed(pointer_ratio, delta_sign, self._settings)
        return self.viewport

    def pan_by(self, dx_px: float, dy_px: float, canvas_width: float,
               canvas_height: float) -> ViewportState:
        self.viewport = self.viewport.panned(dx_px, dy_px, canvas_width, canvas_height,
                                             self._settings)
        return self.viewport

    def visible_window(self) -> Window:
        return visible_window(self.viewport, self._settings)

    # -- output -----------------------------------------------------------

    def render(self, width: int, height: int) -> Frame:
        frame = render_frame(width, height, self.viewport, self.evaluator(),
                             self.n_terms, self._settings)
        self.last_mse = frame.mse
        return frame

    def latex(self) -> str:
        return self._latex_gen.generate(self.waveform, self.n_terms, self.coefficients())
