from __future__ import annotations

import pytest

from app.capture.zoom import MAX_SCALE, MIN_SCALE, ZoomPanController, clamp_scale


def test_zoom_in_is_capped_at_max_scale() -> None:
    zoom = ZoomPanController()
    for _ in range(20):
        zoom.zoom_in()
    assert zoom.scale == MAX_SCALE == 5.0


def test_zoom_out_is_capped_at_min_scale() -> None:
    zoom = ZoomPanController()
    for _ in range(10):
        zoom.zoom_out()
    assert zoom.scale == MIN_SCALE == 0.5


def test_button_zoom_steps_by_one_and_a_half() -> None:
    zoom = ZoomPanController()
    assert zoom.zoom_in() == pytest.approx(1.5)
    assert zoom.zoom_out() == pytest.approx(1.0)


def test_wheel_direction() -> None:
    zoom = ZoomPanController()
    assert zoom.wheel(-120) == pytest.approx(1.1)
    assert zoom.wheel(120) == pytest.approx(0.99)


@pytest.mark.parametrize("value, expected", [(0.1, 0.5), (2.0, 2.0), (9.0, 5.0)])
def test_clamp_scale(value: float, expected: float) -> None:
    assert clamp_scale(value) == expected


def test_reset_restores_identity_transform() -> None:
    zoom = ZoomPanController()
    zoom.zoom_in()
    zoom.begin_drag((0.0, 0.0), on_image=False)
    zoom.drag((30.0, -12.0))
    zoom.end_drag()

    state = zoom.reset_zoom()
    assert state.as_dict() == {"scale": 1.0, "translateX": 0.0, "translateY": 0.0}
    assert state.css_transform() == "translate(0px, 0px) scale(1)"


def test_drag_refused_at_base_scale_or_on_image() -> None:
    zoom = ZoomPanController()
    assert zoom.begin_drag((0.0, 0.0), on_image=False) is False

    zoom.zoom_in()
    assert zoom.begin_drag((0.0, 0.0), on_image=True) is False
    assert zoom.state.is_dragging is False


def test_drag_translates_by_pointer_delta() -> None:
    zoom = ZoomPanController()
    zoom.zoom_in()
    assert zoom.begin_drag((10.0, 10.0), on_image=False) is True
    zoom.drag((25.0, 4.0))
    zoom.drag((30.0, 0.0))
    zoom.end_drag()

    assert zoom.state.translate_x == pytest.approx(20.0)
    assert zoom.state.translate_y == pytest.approx(-10.0)
    assert zoom.state.is_dragging is False


def test_click_ending_a_drag_is_swallowed_once() -> None:
    zoom = ZoomPanController()
    zoom.zoom_in()
    zoom.begin_drag((0.0, 0.0), on_image=False)
    zoom.end_drag()

    assert zoom.accept_click() is False
    assert zoom.accept_click() is True


def test_press_on_image_after_pan_places_pin() -> None:
    zoom = ZoomPanController()
    zoom.zoom_in()
    zoom.begin_drag((0.0, 0.0), on_image=False)
    zoom.drag((30.0, 30.0))
    zoom.end_drag()

    assert zoom.begin_drag((100.0, 100.0), on_image=True) is False
    assert zoom.accept_click() is True


def test_press_at_base_scale_starts_a_fresh_gesture() -> None:
    zoom = ZoomPanController()
    zoom.zoom_in()
    zoom.begin_drag((0.0, 0.0), on_image=False)
    zoom.end_drag()
    zoom.zoom_out()

    assert zoom.begin_drag((5.0, 5.0), on_image=False) is False
    assert zoom.accept_click() is True


def test_wheel_zoom_in_is_capped_at_max_scale() -> None:
    zoom = ZoomPanController()
    for _ in range(50):
        zoom.wheel(-120)
    assert zoom.scale == MAX_SCALE == 5.0


def test_wheel_zoom_out_is_capped_at_min_scale() -> None:
    zoom = ZoomPanController()
    for _ in range(50):
        zoom.wheel(120)
    assert zoom.scale == MIN_SCALE == 0.5
