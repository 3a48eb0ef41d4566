"""Conversion between pointer positions and percent-of-image coordinates.

Clicks are resolved against the image element's *live* bounding rectangle,
which already reflects any CSS scale/translate applied by the zoom
controller, so the stored percentages are independent of zoom and pan.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.models.photo import COORDINATE_MAX, COORDINATE_MIN

PIN_ANCHOR_TRANSFORM = "translate(-50%, -100%)"


class ImageNotReadyError(ValueError):
    """Raised when the floor-plan image has not been laid out yet."""


@dataclass(frozen=True, slots=True)
class BoundingRect:
    left: float
    top: float
    width: float
    height: float

    @property
    def is_laid_out(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True, slots=True)
class PercentPoint:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class PinStyle:
    left: str
    top: str
    transform: str = PIN_ANCHOR_TRANSFORM

    def as_css(self) -> dict[str, str]:
        return {"left": self.left, "top": self.top, "transform": self.transform}


def clamp_percent(value: float) -> float:
    return max(COORDINATE_MIN, min(COORDINATE_MAX, value))


def point_to_percent(client_x: float, client_y: float, rect: BoundingRect) -> PercentPoint:
    """Map a pointer position to clamped (x%, y%) of the rendered image."""

    if not rect.is_laid_out:
        raise ImageNotReadyError("Floor-plan image has no rendered size yet")

    x = (client_x - rect.left) / rect.width * 100
    y = (client_y - rect.top) / rect.height * 100
    return PercentPoint(x=clamp_percent(x), y=clamp_percent(y))


def _format_percent(value: float) -> str:
    return f"{value:g}%"


def percent_to_style(x: float, y: float) -> PinStyle:
    """Position a pin so its tip, not its centre, sits on (x%, y%)."""

    return PinStyle(left=_format_percent(x), top=_format_percent(y))


def _parse_percent(value: str) -> float:
    stripped = value.strip()
    if not stripped.endswith("%"):
        raise ValueError(f"Expected a percentage, got {value!r}")
    return float(stripped[:-1])


def style_to_pixel(style: PinStyle, rect: BoundingRect) -> tuple[float, float]:
    """Return the viewport pixel the pin tip points at.

    ``translate(-50%, -100%)`` shifts the marker box left by half its width
    and up by its full height, which puts the bottom-centre tip exactly on
    the ``left``/``top`` anchor.
    """

    x = rect.left + _parse_percent(style.left) / 100 * rect.width
    y = rect.top + _parse_percent(style.top) / 100 * rect.height
    return x, y


__all__ = [
    "BoundingRect",
    "ImageNotReadyError",
    "PIN_ANCHOR_TRANSFORM",
    "PercentPoint",
    "PinStyle",
    "clamp_percent",
    "percent_to_style",
    "point_to_percent",
    "style_to_pixel",
]
