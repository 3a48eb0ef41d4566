"""Floor-plan catalog and building/floor resolution.

Catalog functions (``upload_floor_plan``, ``delete_floor_plan``, ...) raise on
failure. :class:`FloorPlanResolver` is the read side used by the capture flow
and the gallery: lookup failures are logged and degrade to defaults or
``None`` so that location tagging never blocks a photo upload.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.metrics import FLOOR_PLAN_FALLBACKS
from app.models import FloorPlan, Walker, floor_sort_key, normalize_floor_level
from app.services.storage import (
    ObjectStorage,
    StorageUnavailableError,
    StoredObjectNotFoundError,
    build_floor_plan_key,
    is_image_mime,
)

logger = logging.getLogger("app.floorplans")


class FloorPlanError(Exception):
    """Base class for floor-plan catalog failures."""


class FloorPlanNotFoundError(FloorPlanError):
    pass


class FloorPlanValidationError(FloorPlanError):
    pass


class FloorPlanConflictError(FloorPlanError):
    """Raised when a concurrent upload won the active slot for the same floor."""


@dataclass(frozen=True, slots=True)
class ResolvedImage:
    url: str
    is_placeholder: bool
    floor_plan_id: str | None = None


def _active_plans_query():
    return select(FloorPlan).where(FloorPlan.is_active.is_(True))


def active_floor_plans(db: Session) -> list[FloorPlan]:
    plans = db.execute(_active_plans_query()).scalars().all()
    return sorted(
        plans,
        key=lambda plan: (plan.building_name, floor_sort_key(plan.floor_level)),
    )


def get_active_floor_plan(db: Session, building: str, floor: str) -> FloorPlan | None:
    """Return the resolved plan for (building, floor).

    When legacy data holds more than one active row the most recent one wins.
    """

    return (
        db.execute(
            _active_plans_query()
            .where(
                FloorPlan.building_name == building,
                FloorPlan.floor_level == normalize_floor_level(floor),
            )
            .order_by(FloorPlan.version.desc(), FloorPlan.uploaded_at.desc())
            .limit(1)
        )
        .scalars()
        .first()
    )


def buildings_with_floor_plans(db: Session) -> list[str]:
    rows = db.execute(
        select(FloorPlan.building_name).where(FloorPlan.is_active.is_(True)).distinct()
    ).scalars()
    return sorted(set(rows))


def walker_buildings(db: Session) -> list[str]:
    rows = db.execute(select(Walker.school).distinct()).scalars()
    return sorted({school for school in rows if school and school.strip()})


def floors_with_floor_plans(db: Session, building: str) -> list[str]:
    rows = db.execute(
        select(FloorPlan.floor_level)
        .where(FloorPlan.building_name == building, FloorPlan.is_active.is_(True))
        .distinct()
    ).scalars()
    return sorted(set(rows), key=floor_sort_key)


def upload_floor_plan(
    db: Session,
    storage: ObjectStorage,
    *,
    building: str,
    floor: str,
    filename: str,
    content: bytes,
    mime_type: str,
    description: str | None = None,
    uploaded_by: str | None = None,
    clock: Callable[[], float] = time.time,
) -> FloorPlan:
    """Store a new floor plan and make it the active one for its floor.

    The blob is written first; superseding the previous plan and inserting
    the new row happen in a single transaction guarded by the partial
    unique index on active (building, floor) pairs.
    """

    building_name = building.strip()
    floor_level = normalize_floor_level(floor)
    if not building_name:
        raise FloorPlanValidationError("Building name is required")
    if not floor_level:
        raise FloorPlanValidationError("Floor level is required")
    if not is_image_mime(mime_type):
        raise FloorPlanValidationError("Floor plans must be image files")
    if not content:
        raise FloorPlanValidationError("Floor plan file is empty")
    if len(content) > storage.settings.floor_plan_max_size:
        raise FloorPlanValidationError("Floor plan exceeds size limit")

    latest_version = db.execute(
        select(func.max(FloorPlan.version)).where(
            FloorPlan.building_name == building_name,
            FloorPlan.floor_level == floor_level,
        )
    ).scalar_one_or_none()
    version = (latest_version or 0) + 1

    bucket = storage.settings.floor_plans_bucket
    key = build_floor_plan_key(
        building_name,
        floor_level,
        filename,
        version=version,
        timestamp_ms=int(clock() * 1000),
    )
    try:
        storage.ensure_bucket_exists(bucket)
        storage.put_object(bucket, key, content, content_type=mime_type.strip().lower())
    except StorageUnavailableError:
        db.rollback()
        raise

    try:
        db.execute(
            update(FloorPlan)
            .where(
                FloorPlan.building_name == building_name,
                FloorPlan.floor_level == floor_level,
                FloorPlan.is_active.is_(True),
            )
            .values(is_active=False)
        )
        plan = FloorPlan(
            building_name=building_name,
            floor_level=floor_level,
            bucket=bucket,
            file_path=key,
            file_name=filename,
            file_size=len(content),
            mime_type=mime_type.strip().lower(),
            description=description,
            uploaded_by=uploaded_by,
            is_active=True,
            version=version,
        )
        db.add(plan)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        _discard_blob(storage, bucket, key)
        raise FloorPlanConflictError(
            "Another floor plan was activated for this floor; retry the upload"
        ) from exc
    except SQLAlchemyError:
        db.rollback()
        _discard_blob(storage, bucket, key)
        raise

    db.refresh(plan)
    logger.info(
        "Floor plan uploaded",
        extra={
            "building": building_name,
            "floor": floor_level,
            "version": plan.version,
            "floor_plan_id": plan.id,
        },
    )
    return plan


def _discard_blob(storage: ObjectStorage, bucket: str, key: str) -> None:
    try:
        storage.delete_object(bucket, key)
    except (StorageUnavailableError, StoredObjectNotFoundError):
        logger.warning("Unable to discard orphaned floor plan blob %s", key)


def delete_floor_plan(db: Session, storage: ObjectStorage, floor_plan_id: str) -> None:
    """Hard-delete a floor plan: blob first, then the row."""

    plan = db.get(FloorPlan, floor_plan_id)
    if plan is None:
        raise FloorPlanNotFoundError(floor_plan_id)

    try:
        storage.delete_object(plan.bucket, plan.file_path)
    except StoredObjectNotFoundError:
        logger.warning("Floor plan blob %s already missing", plan.file_path)

    building_name = plan.building_name
    db.delete(plan)
    db.commit()
    logger.info(
        "Floor plan deleted",
        extra={"floor_plan_id": floor_plan_id, "building": building_name},
    )


class FloorPlanResolver:
    """Resolve buildings, floors and floor-plan images for one session."""

    def __init__(self, db: Session, storage: ObjectStorage, settings: Settings) -> None:
        self.db = db
        self.storage = storage
        self.settings = settings

    @property
    def default_floors(self) -> list[str]:
        return list(self.settings.default_floors)

    @property
    def placeholder_url(self) -> str:
        return self.settings.floor_plan_placeholder_url

    def list_buildings(self) -> list[str]:
        try:
            names = {*buildings_with_floor_plans(self.db), *walker_buildings(self.db)}
        except SQLAlchemyError:
            logger.exception("Failed to list buildings")
            FLOOR_PLAN_FALLBACKS.labels(lookup="buildings", reason="error").inc()
            return []
        return sorted(names)

    def list_floors(self, building: str) -> list[str]:
        """Floors with an active plan, or the default list when there are none."""

        try:
            floors = floors_with_floor_plans(self.db, building)
        except SQLAlchemyError:
            logger.exception("Failed to list floors", extra={"building": building})
            FLOOR_PLAN_FALLBACKS.labels(lookup="floors", reason="error").inc()
            return self.default_floors

        if not floors:
            FLOOR_PLAN_FALLBACKS.labels(lookup="floors", reason="missing").inc()
            return self.default_floors
        return floors

    def resolve_image(self, building: str, floor: str) -> ResolvedImage:
        """Resolve the active plan image, falling back to the placeholder."""

        try:
            plan = get_active_floor_plan(self.db, building, floor)
            if plan is None:
                FLOOR_PLAN_FALLBACKS.labels(lookup="image", reason="missing").inc()
                return ResolvedImage(url=self.placeholder_url, is_placeholder=True)
            url = self.storage.floor_plan_url(plan.file_path)
        except (SQLAlchemyError, StorageUnavailableError):
            logger.warning(
                "Failed to resolve floor plan image",
                extra={"building": building, "floor": floor},
                exc_info=True,
            )
            FLOOR_PLAN_FALLBACKS.labels(lookup="image", reason="error").inc()
            return ResolvedImage(url=self.placeholder_url, is_placeholder=True)
        return ResolvedImage(url=url, is_placeholder=False, floor_plan_id=plan.id)

    def resolve_image_url(self, building: str, floor: str) -> str | None:
        resolved = self.resolve_image(building, floor)
        return None if resolved.is_placeholder else resolved.url


__all__ = [
    "FloorPlanConflictError",
    "FloorPlanError",
    "FloorPlanNotFoundError",
    "FloorPlanResolver",
    "FloorPlanValidationError",
    "ResolvedImage",
    "active_floor_plans",
    "buildings_with_floor_plans",
    "delete_floor_plan",
    "floors_with_floor_plans",
    "get_active_floor_plan",
    "upload_floor_plan",
    "walker_buildings",
]
