"""Response schemas for the floor-plan gallery."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class GalleryPinStyle(BaseModel):
    left: str
    top: str
    transform: str


class GalleryPhoto(BaseModel):
    id: str
    submission_id: str
    walker_name: str | None = None
    survey_category: str
    room_number: str | None = None
    caption: str | None = None
    uploaded_at: datetime
    location_x: float | None = None
    location_y: float | None = None
    thumbnail_url: str


class GalleryPin(BaseModel):
    photo_id: str
    style: GalleryPinStyle
    thumbnail_url: str


class GalleryFloor(BaseModel):
    floor: str
    label: str
    image_url: str
    is_placeholder: bool
    submission_count: int
    photo_count: int
    pins: list[GalleryPin] = Field(default_factory=list)
    photos: list[GalleryPhoto] = Field(default_factory=list)


class GalleryBuilding(BaseModel):
    building: str
    floors: list[GalleryFloor] = Field(default_factory=list)


class GalleryResponse(BaseModel):
    buildings: list[GalleryBuilding] = Field(default_factory=list)


__all__ = [
    "GalleryBuilding",
    "GalleryFloor",
    "GalleryPhoto",
    "GalleryPin",
    "GalleryPinStyle",
    "GalleryResponse",
]
