import pytest

from imgview.canvas import (
    BACKGROUND_GRID,
    COLOR_TRANSPARENT,
    MAX_SCALE,
    Canvas,
    ScaleMode,
)
from imgview.config import Config, InvalidKeyError, InvalidValueError


def make_canvas(window=(100, 100), image=(50, 50), mode=ScaleMode.OPTIMAL):
    canvas = Canvas(initial_scale=mode)
    canvas.reset_window(*window, 1)
    canvas.reset_image(*image)
    return canvas


def test_reset_window_reports_first_call():
    canvas = Canvas()
    assert canvas.reset_window(100, 100, 1) is True
    assert canvas.reset_window(200, 100, 2) is False
    assert canvas.window_width == 200
    assert canvas.window_scale == 2


def test_optimal_keeps_small_image_at_real_size():
    canvas = make_canvas(window=(100, 80), image=(50, 30))
    assert canvas.scale == 1.0
    assert canvas.image_x == (100 - 50) // 2
    assert canvas.image_y == (80 - 30) // 2


def test_optimal_shrinks_large_image_to_fit():
    canvas = make_canvas(window=(100, 100), image=(400, 200))
    assert canvas.scale < 1.0
    assert canvas.scaled_width <= 100
    assert canvas.scaled_height <= 100


def test_fill_covers_window():
    canvas = make_canvas(window=(100, 100), image=(400, 200), mode=ScaleMode.FILL)
    assert canvas.scaled_width >= 99
    assert canvas.scaled_height >= 99
    assert canvas.scale == pytest.approx(0.5)


def test_width_mode_matches_window_width():
    canvas = make_canvas(window=(300, 100), image=(150, 400), mode=ScaleMode.WIDTH)
    assert canvas.scale == pytest.approx(2.0)


def test_reset_image_rejects_empty_size():
    canvas = Canvas()
    canvas.reset_window(100, 100, 1)
    with pytest.raises(ValueError):
        canvas.reset_image(0, 10)


def test_zoom_mode_name():
    canvas = make_canvas(window=(100, 100), image=(400, 400))
    canvas.zoom("real")
    assert canvas.scale == 1.0


def test_zoom_percent_step():
    canvas = make_canvas()
    canvas.zoom("10")
    assert canvas.scale == pytest.approx(1.1)
    canvas.zoom("-50")
    assert canvas.scale == pytest.approx(0.55)


def test_zoom_clamps_to_max_scale():
    canvas = make_canvas()
    for _ in range(5):
        canvas.zoom("999")
    assert canvas.scale == MAX_SCALE


def test_zoom_clamps_to_min_size():
    canvas = make_canvas(window=(500, 500), image=(200, 100))
    for _ in range(10):
        canvas.zoom("-99")
    assert canvas.scale == pytest.approx(0.1)
    assert canvas.scaled_height >= 9


@pytest.mark.parametrize("op", ["abc", "0", "1000", "-1000"])
def test_zoom_invalid_operation(op):
    canvas = make_canvas()
    with pytest.raises(ValueError):
        canvas.zoom(op)


def test_zoom_empty_is_noop():
    canvas = make_canvas()
    before = canvas.scale
    canvas.zoom("")
    canvas.zoom(None)
    assert canvas.scale == before


def test_move_small_image_stays_centered():
    canvas = make_canvas()
    assert canvas.move(True, 10) is False
    assert canvas.move(False, -10) is False


def test_move_large_image():
    canvas = make_canvas(window=(100, 100), image=(400, 400), mode=ScaleMode.REAL)
    start = canvas.image_x
    assert canvas.move(True, 10) is True
    assert canvas.image_x == start + 10
    # moving too far right snaps the left edge to the window
    canvas.move(True, 999)
    assert canvas.image_x == 0


def test_drag_large_image():
    canvas = make_canvas(window=(100, 100), image=(400, 400), mode=ScaleMode.REAL)
    canvas.drag(1000, 1000)
    assert (canvas.image_x, canvas.image_y) == (0, 0)
    assert canvas.drag(5, 0) is False
    assert canvas.drag(-10, -20) is True
    assert (canvas.image_x, canvas.image_y) == (-10, -20)


def test_drag_keeps_right_edge_in_window():
    canvas = make_canvas(window=(100, 100), image=(400, 400), mode=ScaleMode.REAL)
    canvas.drag(-10000, 0)
    assert canvas.image_x + canvas.scaled_width == canvas.window_width


def test_swap_image_size():
    canvas = make_canvas(window=(100, 100), image=(60, 20))
    canvas.swap_image_size()
    assert (canvas.image_width, canvas.image_height) == (20, 60)
    canvas.swap_image_size()
    assert (canvas.image_width, canvas.image_height) == (60, 20)


def test_switch_aa_toggles():
    canvas = Canvas()
    assert canvas.switch_aa() is True
    assert canvas.switch_aa() is False
    assert canvas.antialiasing is False


def test_load_config_values():
    canvas = Canvas()
    canvas.load_config("antialiasing", "yes")
    canvas.load_config("scale", "fill")
    canvas.load_config("transparency", "none")
    canvas.load_config("background", "#ff0000")
    assert canvas.antialiasing is True
    assert canvas.initial_scale is ScaleMode.FILL
    assert canvas.image_bkg == COLOR_TRANSPARENT
    assert canvas.window_bkg == 0xFF0000
    canvas.load_config("transparency", "grid")
    canvas.load_config("background", "none")
    assert canvas.image_bkg == BACKGROUND_GRID
    assert canvas.window_bkg == COLOR_TRANSPARENT


@pytest.mark.parametrize(
    "key, value",
    [("antialiasing", "maybe"), ("scale", "huge"), ("transparency", "zz"), ("background", "grid")],
)
def test_load_config_invalid_value(key, value):
    with pytest.raises(InvalidValueError):
        Canvas().load_config(key, value)


def test_load_config_invalid_key():
    with pytest.raises(InvalidKeyError):
        Canvas().load_config("unknown", "1")


def test_register_with_config():
    canvas = Canvas()
    config = Config()
    canvas.register(config)
    config.set("general", "scale", "real")
    canvas.reset_window(100, 100, 1)
    canvas.reset_image(400, 400)
    assert canvas.scale == 1.0
    with pytest.raises(InvalidKeyError):
        config.set("general", "nope", "1")