"""Floor plan ORM model and floor token ordering."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base

FLOOR_LEVELS: tuple[str, ...] = (
    "basement",
    "first",
    "second",
    "third",
    "fourth",
    "fifth",
    "sixth",
    "seventh",
    "eighth",
    "ninth",
    "tenth",
)

FLOOR_LABELS: dict[str, str] = {
    "basement": "Basement",
    **{level: f"{level.capitalize()} Floor" for level in FLOOR_LEVELS[1:]},
}

_FLOOR_RANK = {level: index for index, level in enumerate(FLOOR_LEVELS)}


def normalize_floor_level(value: str) -> str:
    return value.strip().lower()


def floor_sort_key(level: str) -> tuple[int, str]:
    """Order known tokens bottom-up; unknown tokens follow alphabetically."""

    normalized = normalize_floor_level(level)
    return (_FLOOR_RANK.get(normalized, len(FLOOR_LEVELS)), normalized)


def floor_label(level: str) -> str:
    return FLOOR_LABELS.get(normalize_floor_level(level), level)


class FloorPlan(Base):
    """A stored floor-plan image for one floor of one building."""

    __tablename__ = "floor_plans"
    __table_args__ = (
        CheckConstraint("length(building_name) > 0", name="building_name_not_blank"),
        CheckConstraint("version >= 1", name="version_positive"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    building_name: Mapped[str] = mapped_column(String(255), nullable=False)
    floor_level: Mapped[str] = mapped_column(String(32), nullable=False)
    bucket: Mapped[str] = mapped_column(String(63), nullable=False)
    file_path: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    uploaded_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


Index(
    "uq_floor_plans_active_building_floor",
    FloorPlan.building_name,
    FloorPlan.floor_level,
    unique=True,
    postgresql_where=text("is_active"),
    sqlite_where=text("is_active = 1"),
)
Index("ix_floor_plans_building_active", FloorPlan.building_name, FloorPlan.is_active)


__all__ = [
    "FLOOR_LABELS",
    "FLOOR_LEVELS",
    "FloorPlan",
    "floor_label",
    "floor_sort_key",
    "normalize_floor_level",
]
