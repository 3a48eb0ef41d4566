from .floorplans import (
    FloorPlanConflictError,
    FloorPlanError,
    FloorPlanNotFoundError,
    FloorPlanResolver,
    FloorPlanValidationError,
    ResolvedImage,
    delete_floor_plan,
    upload_floor_plan,
)
from .gallery import build_floor_views, group_by_building_and_floor
from .photo_locations import (
    UNSET,
    LocationUpdate,
    LocationValidationError,
    PhotoNotFoundError,
    update_photo_location,
)
from .storage import ObjectStorage, StorageUnavailableError, StoredObjectNotFoundError

__all__ = [
    "FloorPlanConflictError",
    "FloorPlanError",
    "FloorPlanNotFoundError",
    "FloorPlanResolver",
    "FloorPlanValidationError",
    "LocationUpdate",
    "LocationValidationError",
    "ObjectStorage",
    "PhotoNotFoundError",
    "ResolvedImage",
    "StorageUnavailableError",
    "StoredObjectNotFoundError",
    "UNSET",
    "build_floor_views",
    "delete_floor_plan",
    "group_by_building_and_floor",
    "update_photo_location",
]
