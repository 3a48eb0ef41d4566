from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.db import get_db
from app.deps import get_resolver
from app.models import Photo, Submission
from app.schemas import (
    GalleryBuilding,
    GalleryFloor,
    GalleryPhoto,
    GalleryPin,
    GalleryPinStyle,
    GalleryResponse,
)
from app.services.floorplans import FloorPlanResolver
from app.services.gallery import (
    FloorView,
    build_floor_views,
    group_by_building_and_floor,
    photo_thumbnail_url,
)

router = APIRouter(prefix="/gallery", tags=["gallery"])

DbSession = Annotated[Session, Depends(get_db)]
Resolver = Annotated[FloorPlanResolver, Depends(get_resolver)]


def _serialize_photo(photo: Photo) -> GalleryPhoto:
    walker = photo.submission.walker if photo.submission is not None else None
    return GalleryPhoto(
        id=photo.id,
        submission_id=photo.submission_id,
        walker_name=walker.name if walker is not None else None,
        survey_category=photo.survey_category,
        room_number=photo.room_number,
        caption=photo.caption,
        uploaded_at=photo.uploaded_at,
        location_x=photo.location_x,
        location_y=photo.location_y,
        thumbnail_url=photo_thumbnail_url(photo.id),
    )


def _serialize_floor(view: FloorView) -> GalleryFloor:
    return GalleryFloor(
        floor=view.floor,
        label=view.label,
        image_url=view.image.url,
        is_placeholder=view.image.is_placeholder,
        submission_count=view.submission_count,
        photo_count=len(view.photos),
        pins=[
            GalleryPin(
                photo_id=pin.photo.id,
                style=GalleryPinStyle(**pin.style.as_css()),
                thumbnail_url=pin.thumbnail_url,
            )
            for pin in view.pins
        ],
        photos=[_serialize_photo(photo) for photo in view.photos],
    )


@router.get("", response_model=GalleryResponse)
def get_gallery(db: DbSession, resolver: Resolver) -> GalleryResponse:
    submissions = (
        db.execute(
            select(Submission)
            .options(selectinload(Submission.photos), selectinload(Submission.walker))
            .order_by(Submission.created_at.desc())
        )
        .scalars()
        .all()
    )
    views = build_floor_views(group_by_building_and_floor(submissions), resolver)

    buildings: dict[str, GalleryBuilding] = {}
    for view in views:
        entry = buildings.setdefault(view.building, GalleryBuilding(building=view.building))
        entry.floors.append(_serialize_floor(view))
    return GalleryResponse(buildings=list(buildings.values()))


__all__ = ["router"]
