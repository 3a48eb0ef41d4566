"""Zoom and pan state for the floor-plan viewport."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

MIN_SCALE: Final = 0.5
MAX_SCALE: Final = 5.0
BUTTON_ZOOM_FACTOR: Final = 1.5
WHEEL_ZOOM_IN: Final = 1.1
WHEEL_ZOOM_OUT: Final = 0.9


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


@dataclass(slots=True)
class ZoomState:
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0
    is_dragging: bool = False
    last_pointer: tuple[float, float] | None = None

    def css_transform(self) -> str:
        return (
            f"translate({self.translate_x:g}px, {self.translate_y:g}px) "
            f"scale({self.scale:g})"
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "scale": self.scale,
            "translateX": self.translate_x,
            "translateY": self.translate_y,
        }


class ZoomPanController:
    """Drive the CSS transform of the floor-plan container.

    Any gesture that entered the dragging state marks the click ending it as
    consumed, so panning never drops a pin. Every pointer-down goes through
    :meth:`begin_drag`, which starts a new gesture.
    """

    def __init__(self) -> None:
        self.state = ZoomState()
        self._gesture_dragged = False

    @property
    def scale(self) -> float:
        return self.state.scale

    def _set_scale(self, scale: float) -> None:
        self.state.scale = clamp_scale(scale)

    def zoom_in(self) -> float:
        self._set_scale(self.state.scale * BUTTON_ZOOM_FACTOR)
        return self.state.scale

    def zoom_out(self) -> float:
        self._set_scale(self.state.scale / BUTTON_ZOOM_FACTOR)
        return self.state.scale

    def wheel(self, delta_y: float) -> float:
        factor = WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN
        self._set_scale(self.state.scale * factor)
        return self.state.scale

    def reset_zoom(self) -> ZoomState:
        self.state = ZoomState()
        self._gesture_dragged = False
        return self.state

    def begin_drag(self, pointer: tuple[float, float], *, on_image: bool) -> bool:
        """Start panning; refused at scale <= 1 or when pressing the image itself."""

        self._gesture_dragged = False
        if self.state.scale <= 1 or on_image:
            return False
        self.state.is_dragging = True
        self.state.last_pointer = pointer
        self._gesture_dragged = True
        return True

    def drag(self, pointer: tuple[float, float]) -> None:
        if not self.state.is_dragging or self.state.last_pointer is None:
            return
        last_x, last_y = self.state.last_pointer
        self.state.translate_x += pointer[0] - last_x
        self.state.translate_y += pointer[1] - last_y
        self.state.last_pointer = pointer

    def end_drag(self) -> None:
        self.state.is_dragging = False
        self.state.last_pointer = None

    def accept_click(self) -> bool:
        """Return whether the click closing the current gesture may place a pin."""

        if self.state.is_dragging or self._gesture_dragged:
            self._gesture_dragged = False
            return False
        return True


__all__ = [
    "BUTTON_ZOOM_FACTOR",
    "MAX_SCALE",
    "MIN_SCALE",
    "WHEEL_ZOOM_IN",
    "WHEEL_ZOOM_OUT",
    "ZoomPanController",
    "ZoomState",
    "clamp_scale",
]
