from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.metrics import PHOTO_LOCATION_UPDATES
from app.deps import require_admin_token
from app.models import Photo
from app.schemas import (
    PhotoDeleteResponse,
    PhotoLocationUpdateRequest,
    PhotoLocationUpdateResponse,
    PhotoRead,
)
from app.services.photo_locations import (
    UNSET,
    LocationUpdate,
    LocationValidationError,
    PhotoNotFoundError,
    update_photo_location,
)
from app.services.storage import (
    ObjectStorage,
    StorageUnavailableError,
    StoredObjectNotFoundError,
    get_storage,
    split_file_path,
)

logger = logging.getLogger("app.photos")

router = APIRouter(prefix="/photos", tags=["photos"])

DbSession = Annotated[Session, Depends(get_db)]
Storage = Annotated[ObjectStorage, Depends(get_storage)]

MISSING_FIELDS_MESSAGE = "Missing required fields: photoId, x and y"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: ValidationError) -> str:
    for error in exc.errors():
        field = error["loc"][0] if error["loc"] else None
        if error["type"] == "missing":
            return MISSING_FIELDS_MESSAGE
        if field in {"x", "y"}:
            return f"{field} must be a number"
        if field == "skipped":
            return "skipped must be a boolean"
        if field in {"floor", "building"}:
            return f"{field} must be a string or null"
    return MISSING_FIELDS_MESSAGE


def _parse_location_update(raw: Any) -> tuple[str, LocationUpdate]:
    payload = PhotoLocationUpdateRequest.model_validate(raw)
    provided = payload.model_fields_set
    update = LocationUpdate(
        x=payload.x,
        y=payload.y,
        floor=payload.floor if "floor" in provided else UNSET,
        building=payload.building if "building" in provided else UNSET,
        skipped=payload.skipped,
    )
    return payload.photo_id, update


@router.patch("/location", response_model=PhotoLocationUpdateResponse)
async def update_location(request: Request, db: DbSession) -> Any:
    try:
        raw = await request.json()
    except ValueError:
        PHOTO_LOCATION_UPDATES.labels(outcome="invalid").inc()
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON")
    if not isinstance(raw, dict):
        PHOTO_LOCATION_UPDATES.labels(outcome="invalid").inc()
        return _error(status.HTTP_400_BAD_REQUEST, MISSING_FIELDS_MESSAGE)

    try:
        photo_id, update = _parse_location_update(raw)
    except ValidationError as exc:
        PHOTO_LOCATION_UPDATES.labels(outcome="invalid").inc()
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    try:
        photo = update_photo_location(db, photo_id, update)
    except LocationValidationError as exc:
        PHOTO_LOCATION_UPDATES.labels(outcome="invalid").inc()
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except PhotoNotFoundError:
        PHOTO_LOCATION_UPDATES.labels(outcome="not_found").inc()
        return _error(status.HTTP_404_NOT_FOUND, "Photo not found")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Photo location update failed", extra={"photo_id": photo_id})
        PHOTO_LOCATION_UPDATES.labels(outcome="error").inc()
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update photo location")

    outcome = "skipped" if update.skipped else "located"
    PHOTO_LOCATION_UPDATES.labels(outcome=outcome).inc()
    return PhotoLocationUpdateResponse(success=True, record=PhotoRead.model_validate(photo))


@router.get("/{photo_id}", response_class=RedirectResponse)
def get_photo(photo_id: str, db: DbSession, storage: Storage) -> Any:
    """Redirect to a short-lived signed URL for the stored image."""

    photo = db.get(Photo, photo_id)
    if photo is None:
        return _error(status.HTTP_404_NOT_FOUND, "Photo not found")

    bucket, key = split_file_path(photo.file_path, storage.settings.photos_bucket)
    try:
        url = storage.presigned_get(bucket, key)
    except StorageUnavailableError:
        logger.exception("Unable to sign photo URL", extra={"photo_id": photo_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate photo URL")
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.delete(
    "/{photo_id}",
    response_model=PhotoDeleteResponse,
    dependencies=[Depends(require_admin_token)],
)
def delete_photo(photo_id: str, db: DbSession, storage: Storage) -> Any:
    photo = db.get(Photo, photo_id)
    if photo is None:
        return _error(status.HTTP_404_NOT_FOUND, "Photo not found")

    bucket, key = split_file_path(photo.file_path, storage.settings.photos_bucket)
    try:
        storage.delete_object(bucket, key)
    except (StorageUnavailableError, StoredObjectNotFoundError):
        # The row is removed even when the blob cannot be.
        logger.warning(
            "Unable to delete photo blob",
            extra={"photo_id": photo_id, "key": key},
            exc_info=True,
        )

    try:
        db.delete(photo)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Unable to delete photo row", extra={"photo_id": photo_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete photo")

    logger.info("Photo deleted", extra={"photo_id": photo_id})
    return PhotoDeleteResponse(success=True, message="Photo deleted successfully")


__all__ = ["router"]
