"""Pydantic schemas for floor plans."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class FloorPlanRead(BaseModel):
    id: str
    building_name: str
    floor_level: str
    file_name: str
    file_size: int | None = None
    mime_type: str | None = None
    description: str | None = None
    is_active: bool
    version: int
    uploaded_by: str | None = None
    uploaded_at: datetime
    url: str

    model_config = {"from_attributes": True}


class FloorPlanImageRead(BaseModel):
    url: str
    is_placeholder: bool


__all__ = ["FloorPlanImageRead", "FloorPlanRead"]
