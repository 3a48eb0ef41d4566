from .floor_plan import FloorPlanImageRead, FloorPlanRead
from .gallery import (
    GalleryBuilding,
    GalleryFloor,
    GalleryPhoto,
    GalleryPin,
    GalleryPinStyle,
    GalleryResponse,
)
from .photo import (
    PhotoDeleteResponse,
    PhotoLocationUpdateRequest,
    PhotoLocationUpdateResponse,
    PhotoRead,
)

__all__ = [
    "FloorPlanImageRead",
    "FloorPlanRead",
    "GalleryBuilding",
    "GalleryFloor",
    "GalleryPhoto",
    "GalleryPin",
    "GalleryPinStyle",
    "GalleryResponse",
    "PhotoDeleteResponse",
    "PhotoLocationUpdateRequest",
    "PhotoLocationUpdateResponse",
    "PhotoRead",
]
