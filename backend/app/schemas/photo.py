"""Pydantic schemas for survey photo locations."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, field_validator

from app.models import LocationStatus


class PhotoLocationUpdateRequest(BaseModel):
    """Body of ``PATCH /photos/location``.

    ``floor`` and ``building`` distinguish "absent" from ``null`` through
    ``model_fields_set``: absent leaves the stored value, ``null`` clears it.
    """

    photo_id: str = Field(alias="photoId", min_length=1)
    x: StrictFloat | StrictInt
    y: StrictFloat | StrictInt
    floor: str | None = None
    building: str | None = None
    skipped: StrictBool = False

    model_config = {"populate_by_name": True}

    @field_validator("photo_id")
    @classmethod
    def _trim_photo_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("photoId cannot be blank")
        return cleaned


class PhotoRead(BaseModel):
    id: str
    submission_id: str
    survey_category: str
    question_key: str | None = None
    room_number: str | None = None
    file_name: str
    file_path: str
    mime_type: str | None = None
    caption: str | None = None
    uploaded_at: datetime
    location_x: float | None = None
    location_y: float | None = None
    floor_level: str | None = None
    building: str | None = None
    location_status: LocationStatus

    model_config = {"from_attributes": True}


class PhotoLocationUpdateResponse(BaseModel):
    success: bool = True
    record: PhotoRead


class PhotoDeleteResponse(BaseModel):
    success: bool
    message: str


__all__ = [
    "PhotoDeleteResponse",
    "PhotoLocationUpdateRequest",
    "PhotoLocationUpdateResponse",
    "PhotoRead",
]
