"""Group located photos by building and floor for the admin gallery."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Final

from app.models import LocationStatus, Photo, Submission, floor_label, floor_sort_key
from app.services.coordinates import PinStyle, percent_to_style
from app.services.floorplans import FloorPlanResolver, ResolvedImage
from app.services.photo_locations import UNKNOWN_BUILDING

logger = logging.getLogger("app.gallery")

UNKNOWN_FLOOR_LABEL: Final = "Unknown Floor"


@dataclass(slots=True)
class FloorGroup:
    photos: list[Photo] = field(default_factory=list)
    submissions: dict[str, Submission] = field(default_factory=dict)

    @property
    def pin_photos(self) -> list[Photo]:
        return [photo for photo in self.photos if is_pin_eligible(photo)]


GalleryTree = dict[str, dict[str, FloorGroup]]


@dataclass(frozen=True, slots=True)
class Pin:
    photo: Photo
    submission: Submission
    style: PinStyle
    thumbnail_url: str


@dataclass(frozen=True, slots=True)
class FloorView:
    building: str
    floor: str
    label: str
    image: ResolvedImage
    pins: list[Pin]
    photos: list[Photo]
    submission_count: int


def is_pin_eligible(photo: Photo) -> bool:
    """Only photos with both coordinates, and not explicitly skipped, get a pin."""

    if photo.location_x is None or photo.location_y is None:
        return False
    return photo.location_status is not LocationStatus.SKIPPED


def grouping_key(photo: Photo, submission: Submission) -> tuple[str, str]:
    building = photo.building
    if not building:
        walker = submission.walker
        building = walker.school if walker is not None and walker.school else UNKNOWN_BUILDING
    return building, photo.floor_level or UNKNOWN_FLOOR_LABEL


def group_by_building_and_floor(submissions: Iterable[Submission]) -> GalleryTree:
    tree: GalleryTree = {}
    for submission in submissions:
        for photo in submission.photos:
            building, floor = grouping_key(photo, submission)
            group = tree.setdefault(building, {}).setdefault(floor, FloorGroup())
            group.photos.append(photo)
            group.submissions.setdefault(submission.id, submission)
    return tree


def _floor_order(floor: str) -> tuple[int, int, str]:
    if floor == UNKNOWN_FLOOR_LABEL:
        return (1, 0, floor)
    rank, normalized = floor_sort_key(floor)
    return (0, rank, normalized)


def photo_thumbnail_url(photo_id: str, *, prefix: str = "/api/v1") -> str:
    return f"{prefix}/photos/{photo_id}"


def build_floor_views(
    tree: GalleryTree,
    resolver: FloorPlanResolver,
) -> list[FloorView]:
    """Resolve each floor's image once and lay pins over it."""

    views: list[FloorView] = []
    for building in sorted(tree):
        floors = tree[building]
        for floor in sorted(floors, key=_floor_order):
            group = floors[floor]
            image = resolver.resolve_image(building, floor)
            pins = [
                Pin(
                    photo=photo,
                    submission=photo.submission,
                    style=percent_to_style(photo.location_x, photo.location_y),
                    thumbnail_url=photo_thumbnail_url(photo.id),
                )
                for photo in group.pin_photos
            ]
            views.append(
                FloorView(
                    building=building,
                    floor=floor,
                    label=floor_label(floor),
                    image=image,
                    pins=pins,
                    photos=group.photos,
                    submission_count=len(group.submissions),
                )
            )
    logger.debug("Built gallery with %d floor views", len(views))
    return views


__all__ = [
    "FloorGroup",
    "FloorView",
    "GalleryTree",
    "Pin",
    "UNKNOWN_FLOOR_LABEL",
    "build_floor_views",
    "group_by_building_and_floor",
    "grouping_key",
    "is_pin_eligible",
    "photo_thumbnail_url",
]
