import pytest

from fourier_explorer.series import Waveform
from fourier_explorer.session import (
    PRESETS,
    FourierSession,
    autoplay_step,
    clamp_terms,
    slider_to_terms,
    terms_to_slider,
)
from fourier_explorer.settings import Settings
from fourier_explorer.viewport import ViewportState


def test_autoplay_step_sizes():
    assert autoplay_step(1) == 2
    assert autoplay_step(29) == 30
    assert autoplay_step(30) == 32
    assert autoplay_step(68) == 70
    assert autoplay_step(69) == 71
    assert autoplay_step(70) == 73
    assert autoplay_step(98) == 100
    assert autoplay_step(99) == 100


def test_autoplay_wraps_after_last_term():
    assert autoplay_step(100) == 1


def test_tick_follows_autoplay_while_playing():
    session = FourierSession()
    session.set_term_count(68)
    session.tick()
    assert session.n_terms == 68

    session.set_playing(True)
    assert session.tick() == 70
    assert session.tick() == 73


def test_slider_mapping_round_trips():
    for n in range(1, 101):
        assert slider_to_terms(terms_to_slider(n)) == n


def test_slider_mapping_is_quadratic_and_clamped():
    assert slider_to_terms(0) == 1
    assert slider_to_terms(100) == 100
    assert slider_to_terms(50) == 26
    assert slider_to_terms(-5) == 1
    assert slider_to_terms(150) == 100
    assert terms_to_slider(1) == 0.0
    assert terms_to_slider(100) == 100.0


def test_term_count_is_clamped():
    assert clamp_terms(0) == 1
    assert clamp_terms(250) == 100
    assert clamp_terms(float("nan")) == 1
    session = FourierSession()
    assert session.set_term_count(-3) == 1
    assert session.set_slider_position(100) == 100
    assert session.slider_position == pytest.approx(100.0)


def test_reset_terms_stops_playback():
    session = FourierSession()
    session.set_playing(True)
    session.set_term_count(40)
    session.reset_terms()
    assert session.n_terms == 1
    assert not session.playing


def test_unknown_waveform_rejected():
    session = FourierSession()
    with pytest.raises(ValueError):
        session.set_waveform("noise")
    assert session.waveform is Waveform.SQUARE


def test_preset_switches_to_custom():
    session = FourierSession()
    preset = PRESETS[0]
    session.apply_preset(preset)
    assert session.waveform is Waveform.CUSTOM
    assert session.expression == preset.expression


def test_presets_all_parse():
    session = FourierSession()
    for preset in PRESETS:
        assert session.set_expression(preset.expression) is None


def test_bad_expression_is_kept_and_reported():
    session = FourierSession()
    assert session.set_expression("sin(") is not None
    assert session.expression == "sin("
    session.set_waveform("custom")
    frame = session.render(200, 100)
    assert frame.mse == pytest.approx(0.0)


def test_pathological_expressions_render_as_zero():
    session = FourierSession()
    session.set_waveform("custom")
    for text in ("(" * 400 + "x" + ")" * 400, "+".join(["x"] * 3000)):
        assert session.set_expression(text) is not None
        frame = session.render(200, 100)
        assert frame.mse == pytest.approx(0.0)
        assert not frame.approximation[1].any()


def test_coefficients_only_for_custom():
    session = FourierSession()
    assert session.coefficients() is None
    session.set_waveform("custom")
    assert session.coefficients() is not None


def test_changing_terms_reuses_coefficient_table():
    session = FourierSession()
    session.set_waveform("custom")
    session.render(300, 150)
    table = session.coefficients()
    session.set_term_count(80)
    session.render(300, 150)
    assert session.coefficients() is table

    session.set_expression("abs(x)")
    session.render(300, 150)
    assert session.coefficients() is not table


def test_view_interactions_and_reset():
    session = FourierSession()
    session.zoom_at(0.25, +1)
    session.pan_by(40, -10, 800, 400)
    assert session.viewport != ViewportState()
    assert session.visible_window().width < 4.0 * 3.1416
    session.reset_view()
    assert session.viewport == ViewportState()


def test_render_records_error_metric():
    session = FourierSession()
    frame = session.render(400, 200)
    assert session.last_mse == frame.mse
    assert frame.mse > 0.0
    assert frame.n_terms == 5


def test_reconfigure_clamps_state():
    session = FourierSession()
    for _ in range(40):
        session.zoom_at(0.5, +1)
    session.set_term_count(100)
    session.reconfigure(Settings(zoom_max=5.0, max_terms=20))
    assert session.viewport.zoom == 5.0
    assert session.n_terms == 20


def test_latex_describes_current_series():
    session = FourierSession()
    assert r"\sum" in session.latex()
    session.apply_preset(PRESETS[2])
    assert r"\cos" in session.latex()
