"""
Fourier Series Explorer: truncated Fourier series against the exact wave.

Waveforms
---------
square      (4/pi)  sum sin((2k-1)x)/(2k-1)
triangle    (8/pi^2) sum cos((2k-1)x)/(2k-1)^2
sawtooth    (2/pi)  sum (-1)^(k+1) sin(kx)/k
custom      a0/2 + sum a_k cos(kx) + b_k sin(kx), coefficients by quadrature

Mouse wheel zooms about the pointer, dragging pans, the slider picks N and
"Play" steps N on a timer.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from typing import Any, Optional

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import QEvent, QPointF, Qt, QTimer
from PySide6.QtGui import QCursor, QFont, QMouseEvent, QWheelEvent
from PySide6.QtWidgets import (
    QApplication,
    QButtonGroup,
    QCheckBox,
    QDialog,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSlider,
    QSpinBox,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from .render import Frame, GridLine
from .series import Waveform
from .session import PRESETS, SLIDER_MAX, FourierSession, Preset
from .settings import DEFAULT_SETTINGS, Settings

logger = logging.getLogger(__name__)

# Slider ticks per unit of slider position (position 0..100 in 0.1 steps)
SLIDER_RESOLUTION: int = 10

KEYPAD_TOKENS: tuple[str, ...] = (
    "x", "sin(", "cos(", "abs(", "PI", "(", ")", "pow(", "sqrt(", "+", "-", "*", "/",
)


def _grid_polyline(lines: tuple[GridLine, ...], lo: float, hi: float,
                   vertical: bool) -> tuple[np.ndarray, np.ndarray]:
    """NaN-separated line segments spanning [lo, hi] for every grid value."""
    xs: list[float] = []
    ys: list[float] = []
    for line in lines:
        if vertical:
            xs.extend((line.value, line.value, np.nan))
            ys.extend((lo, hi, np.nan))
        else:
            xs.extend((lo, hi, np.nan))
            ys.extend((line.value, line.value, np.nan))
    return np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)


# ===========================================================================
# Settings dialog
# ===========================================================================

class SettingsDialog(QDialog):

    def __init__(self, settings: Settings, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Explorer Settings")
        self._settings = settings
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QGridLayout(self)

        self._threshold_edit = QLineEdit(str(self._settings.discontinuity_threshold))
        self._zoom_max_edit = QLineEdit(str(self._settings.zoom_max))
        self._step_edit = QLineEdit(str(self._settings.quadrature_step))

        self._interval_sb = QSpinBox()
        self._interval_sb.setRange(10, 2000)
        self._interval_sb.setSingleStep(10)
        self._interval_sb.setSuffix(" ms")
        self._interval_sb.setValue(self._settings.autoplay_interval_ms)

        self._error_stride_sb = QSpinBox()
        self._error_stride_sb.setRange(1, 50)
        self._error_stride_sb.setValue(self._settings.error_stride)

        # ── LaTeX format controls ──────────────────────────────────────
        self._latex_approx_cb = QCheckBox("Approximate coefficients (decimals)")
        self._latex_approx_cb.setChecked(self._settings.latex_approx)
        self._latex_approx_cb.setToolTip(
            "ON  — coefficients shown as rounded decimals, e.g. 3.142\n"
            "OFF — exact rational fractions, e.g. 355/113"
        )

        self._latex_decimals_sb = QSpinBox()
        self._latex_decimals_sb.setRange(0, 10)
        self._latex_decimals_sb.setValue(self._settings.latex_decimals)
        self._latex_approx_cb.toggled.connect(self._latex_decimals_sb.setEnabled)
        self._latex_decimals_sb.setEnabled(self._settings.latex_approx)

        self._latex_terms_sb = QSpinBox()
        self._latex_terms_sb.setRange(1, 20)
        self._latex_terms_sb.setValue(self._settings.latex_terms)
        self._latex_terms_sb.setToolTip("Harmonics of a custom series written out in full")

        fields: list[tuple[str, QWidget]] = [
            ("Discontinuity Threshold:", self._threshold_edit),
            ("Max Zoom:", self._zoom_max_edit),
            ("Quadrature Step:", self._step_edit),
            ("Autoplay Interval:", self._interval_sb),
            ("Error Sample Stride:", self._error_stride_sb),
        ]
        for row, (label, widget) in enumerate(fields):
            layout.addWidget(QLabel(label), row, 0)
            layout.addWidget(widget, row, 1)

        sep_row = len(fields)
        sep = QLabel("─── LaTeX Output Format ───")
        sep.setStyleSheet("color: gray; font-size: 10px;")
        layout.addWidget(sep, sep_row, 0, 1, 2)

        layout.addWidget(self._latex_approx_cb, sep_row + 1, 0, 1, 2)
        layout.addWidget(QLabel("Digits after decimal point:"), sep_row + 2, 0)
        layout.addWidget(self._latex_decimals_sb, sep_row + 2, 1)
        layout.addWidget(QLabel("Custom harmonics shown:"), sep_row + 3, 0)
        layout.addWidget(self._latex_terms_sb, sep_row + 3, 1)

        btn_row = QHBoxLayout()
        ok_btn = QPushButton("OK")
        cancel_btn = QPushButton("Cancel")
        ok_btn.clicked.connect(self.accept)
        cancel_btn.clicked.connect(self.reject)
        btn_row.addWidget(ok_btn)
        btn_row.addWidget(cancel_btn)
        layout.addLayout(btn_row, sep_row + 4, 0, 1, 2)

    def get_settings(self) -> Optional[Settings]:
        try:
            return replace(
                self._settings,
                discontinuity_threshold=float(self._threshold_edit.text()),
                zoom_max=float(self._zoom_max_edit.text()),
                quadrature_step=float(self._step_edit.text()),
                autoplay_interval_ms=int(self._interval_sb.value()),
                error_stride=int(self._error_stride_sb.value()),
                latex_approx=bool(self._latex_approx_cb.isChecked()),
                latex_decimals=int(self._latex_decimals_sb.value()),
                latex_terms=int(self._latex_terms_sb.value()),
            )
        except (ValueError, TypeError):
            return None


# ===========================================================================
# Main window
# ===========================================================================

class ExplorerWindow(QMainWindow):

    _REFERENCE_COLOR: tuple[int, int, int] = (51, 65, 85)
    _APPROX_COLOR: tuple[int, int, int] = (59, 130, 246)
    _GRID_COLOR: tuple[int, int, int] = (226, 232, 240)
    _AXIS_COLOR: tuple[int, int, int] = (148, 163, 184)

    _WAVEFORM_LABELS: tuple[tuple[Waveform, str], ...] = (
        (Waveform.SQUARE, "Square"),
        (Waveform.TRIANGLE, "Triangle"),
        (Waveform.SAWTOOTH, "Sawtooth"),
        (Waveform.CUSTOM, "Custom"),
    )

    def __init__(self, settings: Settings = DEFAULT_SETTINGS) -> None:
        super().__init__()
        self.setWindowTitle("Fourier Series Explorer")
        self.setGeometry(100, 100, 1400, 820)

        self._session = FourierSession(settings)

        self._dragging = False
        self._last_drag_pos: Optional[QPointF] = None

        self._timer = QTimer(self)
        self._timer.setInterval(settings.autoplay_interval_ms)
        self._timer.timeout.connect(self._on_tick)

        self._build_ui()
        self._configure_plot()
        self._sync_controls()
        self.redraw()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        root = QHBoxLayout(central)

        right = QVBoxLayout()

        # ── waveform selection ─────────────────────────────────────────
        wave_group = QGroupBox("Waveform")
        wave_layout = QGridLayout(wave_group)
        self._wave_buttons = QButtonGroup(self)
        self._wave_buttons.setExclusive(True)
        for idx, (waveform, label) in enumerate(self._WAVEFORM_LABELS):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked=False, w=waveform: self.set_waveform(w))
            self._wave_buttons.addButton(btn, idx)
            wave_layout.addWidget(btn, idx // 2, idx % 2)
        right.addWidget(wave_group)

        # ── preset functions ───────────────────────────────────────────
        preset_group = QGroupBox("Presets")
        preset_layout = QGridLayout(preset_group)
        for idx, preset in enumerate(PRESETS):
            btn = QPushButton(preset.label)
            btn.setToolTip(f"{preset.expression}  ({preset.description})")
            btn.clicked.connect(lambda _checked=False, p=preset: self.apply_preset(p))
            preset_layout.addWidget(btn, idx // 2, idx % 2)
        right.addWidget(preset_group)

        # ── custom expression + keypad ─────────────────────────────────
        self._custom_group = QGroupBox("Custom f(x)")
        custom_layout = QVBoxLayout(self._custom_group)
        self._expr_edit = QLineEdit(self._session.expression)
        self._expr_edit.setFont(QFont("Courier New"))
        self._expr_edit.setPlaceholderText("Enter an expression in x ...")
        self._expr_edit.textChanged.connect(self._on_expression_changed)
        custom_layout.addWidget(self._expr_edit)

        keypad = QGridLayout()
        keypad.setSpacing(3)
        for idx, token in enumerate(KEYPAD_TOKENS):
            btn = QPushButton(token.rstrip("("))
            btn.clicked.connect(lambda _checked=False, t=token: self._insert_token(t))
            keypad.addWidget(btn, idx // 4, idx % 4)
        back_btn = QPushButton("⌫")
        back_btn.clicked.connect(self._backspace)
        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(self._expr_edit.clear)
        n_tokens = len(KEYPAD_TOKENS)
        keypad.addWidget(back_btn, n_tokens // 4, n_tokens % 4)
        keypad.addWidget(clear_btn, (n_tokens + 1) // 4, (n_tokens + 1) % 4, 1, 2)
        custom_layout.addLayout(keypad)
        right.addWidget(self._custom_group)

        # ── term count ─────────────────────────────────────────────────
        n_group = QGroupBox("Terms N")
        n_layout = QVBoxLayout(n_group)
        self._n_label = QLabel()
        self._n_label.setStyleSheet("font-size: 20px; font-weight: bold; color: rgb(79,70,229);")
        n_layout.addWidget(self._n_label)

        self._n_slider = QSlider(Qt.Orientation.Horizontal)
        self._n_slider.setRange(0, int(SLIDER_MAX * SLIDER_RESOLUTION))
        self._n_slider.valueChanged.connect(self._on_slider_changed)
        n_layout.addWidget(self._n_slider)

        play_row = QHBoxLayout()
        self._play_btn = QPushButton("Play")
        self._play_btn.clicked.connect(self.toggle_playing)
        self._reset_n_btn = QPushButton("Reset N")
        self._reset_n_btn.clicked.connect(self.reset_terms)
        play_row.addWidget(self._play_btn)
        play_row.addWidget(self._reset_n_btn)
        n_layout.addLayout(play_row)
        right.addWidget(n_group)

        # ── LaTeX output panel ─────────────────────────────────────────
        right.addWidget(QLabel("Partial sum (LaTeX):"))
        self._latex_output = QTextEdit()
        self._latex_output.setReadOnly(True)
        self._latex_output.setFontFamily("Courier New")
        right.addWidget(self._latex_output)

        left = QVBoxLayout()
        self._plot_widget = pg.PlotWidget(background="w")
        left.addWidget(self._plot_widget)

        btn_row = QHBoxLayout()
        self._reset_view_btn = QPushButton("Reset View")
        self._export_btn = QPushButton("Copy LaTeX")
        self._settings_btn = QPushButton("Settings")
        self._mse_lbl = QLabel()
        self._window_lbl = QLabel()
        self._status_lbl = QLabel("Ready")
        self._status_lbl.setStyleSheet("color: gray; font-style: italic;")

        self._reset_view_btn.clicked.connect(self.reset_view)
        self._export_btn.clicked.connect(self.copy_latex)
        self._settings_btn.clicked.connect(self.show_settings)

        for widget in (self._reset_view_btn, self._export_btn, self._settings_btn,
                       self._mse_lbl, self._window_lbl, self._status_lbl):
            btn_row.addWidget(widget)
        left.addLayout(btn_row)

        root.addLayout(left, 3)
        root.addLayout(right, 1)

        vb = self._plot_widget.plotItem.vb
        vb.setMenuEnabled(False)
        vb.setMouseEnabled(x=False, y=False)  # pan and zoom go through the session
        vb.sigResized.connect(lambda _vb: self.redraw())
        self._plot_widget.viewport().installEventFilter(self)

    def _configure_plot(self) -> None:
        self._plot_widget.setLabel("left", "y")
        self._plot_widget.setLabel("bottom", "x")
        self._plot_widget.hideButtons()
        vb = self._plot_widget.plotItem.vb
        vb.disableAutoRange()

        self._grid_curve = self._plot_widget.plot(
            pen=pg.mkPen(self._GRID_COLOR, width=1), connect="finite"
        )
        self._axis_curve = self._plot_widget.plot(
            pen=pg.mkPen(self._AXIS_COLOR, width=2), connect="finite"
        )
        self._reference_curve = self._plot_widget.plot(
            pen=pg.mkPen(self._REFERENCE_COLOR, width=3), connect="finite"
        )
        self._approx_curve = self._plot_widget.plot(
            pen=pg.mkPen(self._APPROX_COLOR, width=2)
        )

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def eventFilter(self, obj: Any, event: QEvent) -> bool:  # noqa: N802
        if obj is not self._plot_widget.viewport():
            return super().eventFilter(obj, event)

        rect = self._plot_widget.plotItem.vb.sceneBoundingRect()
        et = event.type()

        if et == QEvent.Type.Wheel and isinstance(event, QWheelEvent):
            if rect.width() <= 0:
                return True
            ratio = (float(event.position().x()) - rect.left()) / rect.width()
            angle = event.angleDelta().y()
            if angle != 0:
                # Wheel away from the user zooms in
                self._session.zoom_at(ratio, 1 if angle > 0 else -1)
                self.redraw()
            return True

        if not isinstance(event, QMouseEvent):
            return super().eventFilter(obj, event)

        if et == QEvent.Type.MouseButtonPress and event.button() == Qt.MouseButton.LeftButton:
            self._dragging = True
            self._last_drag_pos = QPointF(event.position())
            self._plot_widget.viewport().setCursor(QCursor(Qt.CursorShape.ClosedHandCursor))
            return True

        if et == QEvent.Type.MouseMove and self._dragging and self._last_drag_pos is not None:
            pos = event.position()
            dx = float(pos.x() - self._last_drag_pos.x())
            dy = float(pos.y() - self._last_drag_pos.y())
            self._last_drag_pos = QPointF(pos)
            self._session.pan_by(dx, dy, rect.width(), rect.height())
            self.redraw()
            return True

        if et == QEvent.Type.MouseButtonRelease and event.button() == Qt.MouseButton.LeftButton:
            self._dragging = False
            self._last_drag_pos = None
            self._plot_widget.viewport().unsetCursor()
            return True

        return super().eventFilter(obj, event)

    def _on_tick(self) -> None:
        self._session.tick()
        self._sync_controls()
        self.redraw()

    def _on_slider_changed(self, value: int) -> None:
        self._session.set_slider_position(value / SLIDER_RESOLUTION)
        self._n_label.setText(f"N = {self._session.n_terms}")
        self.redraw()

    def _on_expression_changed(self, text: str) -> None:
        error = self._session.set_expression(text)
        if error is None:
            self._set_status("Ready", "gray")
        else:
            self._set_status(f"Evaluates to 0: {error}", "orange")
        self.redraw()

    def _insert_token(self, token: str) -> None:
        self._expr_edit.insert(token)
        self._expr_edit.setFocus()

    def _backspace(self) -> None:
        self._expr_edit.backspace()
        self._expr_edit.setFocus()

    def _set_status(self, text: str, color: str) -> None:
        self._status_lbl.setText(text)
        self._status_lbl.setStyleSheet(f"color: {color}; font-style: italic;")

    # ------------------------------------------------------------------
    # Session actions
    # ------------------------------------------------------------------

    def set_waveform(self, waveform: Waveform) -> None:
        self._session.set_waveform(waveform)
        self._sync_controls()
        self.redraw()

    def apply_preset(self, preset: Preset) -> None:
        self._session.apply_preset(preset)
        self._expr_edit.blockSignals(True)
        self._expr_edit.setText(preset.expression)
        self._expr_edit.blockSignals(False)
        self._set_status("Ready", "gray")
        self._sync_controls()
        self.redraw()

    def toggle_playing(self) -> None:
        if self._session.toggle_playing():
            self._timer.start()
        else:
            self._timer.stop()
        self._sync_controls()

    def reset_terms(self) -> None:
        self._session.reset_terms()
        self._timer.stop()
        self._sync_controls()
        self.redraw()

    def reset_view(self) -> None:
        self._session.reset_view()
        self.redraw()

    def _sync_controls(self) -> None:
        """Push session state into the widgets without re-entering handlers."""
        session = self._session
        for idx, (waveform, _) in enumerate(self._WAVEFORM_LABELS):
            btn = self._wave_buttons.button(idx)
            btn.blockSignals(True)
            btn.setChecked(waveform is session.waveform)
            btn.blockSignals(False)
        self._custom_group.setVisible(session.waveform is Waveform.CUSTOM)

        self._n_slider.blockSignals(True)
        self._n_slider.setValue(round(session.slider_position * SLIDER_RESOLUTION))
        self._n_slider.blockSignals(False)
        self._n_label.setText(f"N = {session.n_terms}")
        self._play_btn.setText("Pause" if session.playing else "Play")

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def redraw(self) -> None:
        vb = self._plot_widget.plotItem.vb
        rect = vb.boundingRect()
        frame = self._session.render(int(rect.width()), int(rect.height()))
        self._draw_frame(frame)
        self._latex_output.setPlainText(self._session.latex())

    def _draw_frame(self, frame: Frame) -> None:
        win = frame.window
        vb = self._plot_widget.plotItem.vb
        vb.setRange(xRange=(win.x_min, win.x_max), yRange=(win.y_min, win.y_max),
                    padding=0, update=True)

        gx_v, gy_v = _grid_polyline(frame.vertical_grid, win.y_min, win.y_max, vertical=True)
        gx_h, gy_h = _grid_polyline(frame.horizontal_grid, win.x_min, win.x_max, vertical=False)
        self._grid_curve.setData(np.concatenate((gx_v, gx_h)), np.concatenate((gy_v, gy_h)),
                                 connect="finite")

        ax_x: list[float] = []
        ax_y: list[float] = []
        if frame.show_x_axis:
            ax_x.extend((win.x_min, win.x_max, np.nan))
            ax_y.extend((0.0, 0.0, np.nan))
        if frame.show_y_axis:
            ax_x.extend((0.0, 0.0, np.nan))
            ax_y.extend((win.y_min, win.y_max, np.nan))
        self._axis_curve.setData(np.asarray(ax_x, dtype=np.float64),
                                 np.asarray(ax_y, dtype=np.float64), connect="finite")

        self._reference_curve.setData(*frame.reference_polyline(), connect="finite")
        self._approx_curve.setData(*frame.approximation)

        bottom = self._plot_widget.plotItem.getAxis("bottom")
        bottom.setTicks([[(g.value, g.label) for g in frame.vertical_grid if g.label]])
        left_axis = self._plot_widget.plotItem.getAxis("left")
        left_axis.setTicks([[(g.value, g.label) for g in frame.horizontal_grid]])

        self._mse_lbl.setText(f"MSE: {frame.mse:.5f}")
        self._window_lbl.setText(
            f"x ∈ [{win.x_min:.2f}, {win.x_max:.2f}]   "
            f"y ∈ [{win.y_min:.2f}, {win.y_max:.2f}]   "
            f"zoom {self._session.viewport.zoom:.2f}×"
        )

    # ------------------------------------------------------------------
    # Toolbar
    # ------------------------------------------------------------------

    def copy_latex(self) -> None:
        text = self._latex_output.toPlainText()
        if text:
            QApplication.clipboard().setText(text)
            QMessageBox.information(self, "Copied", "LaTeX copied to clipboard.")

    def show_settings(self) -> None:
        dlg = SettingsDialog(self._session.settings, self)
        if dlg.exec():
            new_s = dlg.get_settings()
            if new_s is None:
                QMessageBox.critical(self, "Invalid Settings",
                                     "One or more values are invalid.")
                return
            self._session.reconfigure(new_s)
            self._timer.setInterval(new_s.autoplay_interval_ms)
            logger.info("settings updated: %s", new_s)
            self._sync_controls()
            self.redraw()


# ===========================================================================
# Entry point
# ===========================================================================

def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    window = ExplorerWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
