"""Persist floor-plan locations on survey photos."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Final

from sqlalchemy.orm import Session

from app.models import COORDINATE_MAX, COORDINATE_MIN, LocationStatus, Photo, normalize_floor_level

logger = logging.getLogger("app.photos")

UNKNOWN_FLOOR: Final = "unknown"
UNKNOWN_BUILDING: Final = "Unknown Building"


class _Unset(Enum):
    UNSET = "unset"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET


class PhotoNotFoundError(LookupError):
    pass


class LocationValidationError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class LocationUpdate:
    """A requested location change.

    ``floor`` and ``building`` are tri-state: :data:`UNSET` leaves the column
    untouched, ``None`` clears it, a string overwrites it.
    """

    x: float
    y: float
    floor: str | None | _Unset = UNSET
    building: str | None | _Unset = UNSET
    skipped: bool = False

    @classmethod
    def skip(cls) -> "LocationUpdate":
        return cls(x=0.0, y=0.0, skipped=True)


def validate_coordinate(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LocationValidationError(f"{name} must be a number")
    try:
        number = float(value)
    except OverflowError as exc:
        raise LocationValidationError(
            f"{name} must be between {COORDINATE_MIN:g} and {COORDINATE_MAX:g}"
        ) from exc
    if not math.isfinite(number):
        raise LocationValidationError(f"{name} must be a finite number")
    if number < COORDINATE_MIN or number > COORDINATE_MAX:
        raise LocationValidationError(
            f"{name} must be between {COORDINATE_MIN:g} and {COORDINATE_MAX:g}"
        )
    return number


def coerce_floor(value: str | None | _Unset) -> str | None | _Unset:
    """Map legacy sentinels and blanks to "leave untouched"."""

    if value is UNSET or value is None:
        return value
    normalized = normalize_floor_level(value)
    if not normalized or normalized == UNKNOWN_FLOOR:
        return UNSET
    return normalized


def coerce_building(value: str | None | _Unset) -> str | None | _Unset:
    if value is UNSET or value is None:
        return value
    stripped = value.strip()
    if not stripped or stripped == UNKNOWN_BUILDING:
        return UNSET
    return stripped


def update_photo_location(db: Session, photo_id: str, update: LocationUpdate) -> Photo:
    """Write one location update to the photo row and return the refreshed row.

    Re-invoking with the same payload leaves the row in the same state.
    """

    x = validate_coordinate("x", update.x)
    y = validate_coordinate("y", update.y)

    photo = db.get(Photo, photo_id)
    if photo is None:
        raise PhotoNotFoundError(photo_id)

    photo.location_x = x
    photo.location_y = y
    photo.location_status = LocationStatus.SKIPPED if update.skipped else LocationStatus.LOCATED

    floor = coerce_floor(update.floor)
    if floor is not UNSET:
        photo.floor_level = floor

    building = coerce_building(update.building)
    if building is not UNSET:
        photo.building = building

    db.add(photo)
    db.commit()
    db.refresh(photo)

    logger.info(
        "Updated photo %s with location %.2f%%, %.2f%% on %s floor",
        photo_id,
        x,
        y,
        photo.floor_level or UNKNOWN_FLOOR,
        extra={
            "photo_id": photo_id,
            "building": photo.building,
            "location_status": photo.location_status.value,
        },
    )
    return photo


__all__ = [
    "LocationUpdate",
    "LocationValidationError",
    "PhotoNotFoundError",
    "UNKNOWN_BUILDING",
    "UNKNOWN_FLOOR",
    "UNSET",
    "coerce_building",
    "coerce_floor",
    "update_photo_location",
    "validate_coordinate",
]
