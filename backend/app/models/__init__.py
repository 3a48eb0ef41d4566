from .floor_plan import (
    FLOOR_LABELS,
    FLOOR_LEVELS,
    FloorPlan,
    floor_label,
    floor_sort_key,
    normalize_floor_level,
)
from .photo import COORDINATE_MAX, COORDINATE_MIN, LocationStatus, Photo
from .walker import Submission, Walker

__all__ = [
    "COORDINATE_MAX",
    "COORDINATE_MIN",
    "FLOOR_LABELS",
    "FLOOR_LEVELS",
    "FloorPlan",
    "LocationStatus",
    "Photo",
    "Submission",
    "Walker",
    "floor_label",
    "floor_sort_key",
    "normalize_floor_level",
]
