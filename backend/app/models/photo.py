"""Survey photo ORM model carrying the floor-plan location."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.models.enum_utils import sqla_enum

COORDINATE_MIN = 0.0
COORDINATE_MAX = 100.0


class LocationStatus(str, Enum):
    PENDING = "pending"
    LOCATED = "located"
    SKIPPED = "skipped"


class Photo(Base):
    __tablename__ = "survey_photos"
    __table_args__ = (
        CheckConstraint(
            "(location_x IS NULL AND location_y IS NULL) OR "
            "(location_x IS NOT NULL AND location_y IS NOT NULL)",
            name="location_pair",
        ),
        CheckConstraint(
            "location_x IS NULL OR (location_x >= 0 AND location_x <= 100)",
            name="location_x_range",
        ),
        CheckConstraint(
            "location_y IS NULL OR (location_y >= 0 AND location_y <= 100)",
            name="location_y_range",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    submission_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    survey_category: Mapped[str] = mapped_column(String(100), nullable=False)
    question_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(512), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    location_x: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_y: Mapped[float | None] = mapped_column(Float, nullable=True)
    floor_level: Mapped[str | None] = mapped_column(String(32), nullable=True)
    building: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location_status: Mapped[LocationStatus] = mapped_column(
        sqla_enum(LocationStatus, name="photo_location_status"),
        nullable=False,
        default=LocationStatus.PENDING,
    )

    submission: Mapped["Submission"] = relationship("Submission", back_populates="photos")

    @property
    def has_location(self) -> bool:
        return self.location_x is not None and self.location_y is not None


Index("ix_survey_photos_submission_id", Photo.submission_id)
Index("ix_survey_photos_building_floor", Photo.building, Photo.floor_level)


__all__ = ["COORDINATE_MAX", "COORDINATE_MIN", "LocationStatus", "Photo"]
