import logging
from contextvars import ContextVar
from typing import Annotated

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
    status,
)
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.db import get_db
from app.core.limiter import limiter
from app.deps import get_app_settings, get_resolver, require_admin_token
from app.models import FloorPlan
from app.schemas import FloorPlanImageRead, FloorPlanRead
from app.services.floorplans import (
    FloorPlanConflictError,
    FloorPlanNotFoundError,
    FloorPlanResolver,
    FloorPlanValidationError,
    active_floor_plans,
    delete_floor_plan,
    upload_floor_plan,
)
from app.services.storage import ObjectStorage, StorageUnavailableError, get_storage

logger = logging.getLogger("app.floorplans")

router = APIRouter(prefix="/floorplans", tags=["floorplans"])

DbSession = Annotated[Session, Depends(get_db)]
Storage = Annotated[ObjectStorage, Depends(get_storage)]
Resolver = Annotated[FloorPlanResolver, Depends(get_resolver)]


UPLOAD_RATE_LIMIT: ContextVar[str | None] = ContextVar("floor_plan_upload_rate_limit", default=None)


async def _bind_upload_rate_limit(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> None:
    # slowapi passes limit providers a key at most, never the request.
    UPLOAD_RATE_LIMIT.set(settings.floor_plan_upload_rate_limit)


def _upload_rate_limit() -> str:
    return UPLOAD_RATE_LIMIT.get() or get_settings().floor_plan_upload_rate_limit


def _serialize(plan: FloorPlan, storage: ObjectStorage) -> FloorPlanRead:
    try:
        url = storage.floor_plan_url(plan.file_path)
    except StorageUnavailableError:
        logger.warning("Unable to build floor plan URL", extra={"floor_plan_id": plan.id})
        url = storage.settings.floor_plan_placeholder_url
    return FloorPlanRead(
        id=plan.id,
        building_name=plan.building_name,
        floor_level=plan.floor_level,
        file_name=plan.file_name,
        file_size=plan.file_size,
        mime_type=plan.mime_type,
        description=plan.description,
        is_active=plan.is_active,
        version=plan.version,
        uploaded_by=plan.uploaded_by,
        uploaded_at=plan.uploaded_at,
        url=url,
    )


@router.get("/buildings", response_model=list[str])
def list_buildings(resolver: Resolver) -> list[str]:
    return resolver.list_buildings()


@router.get("/floors", response_model=list[str])
def list_floors(
    resolver: Resolver,
    building: Annotated[str, Query(min_length=1)],
) -> list[str]:
    return resolver.list_floors(building)


@router.get("/image", response_model=FloorPlanImageRead)
def resolve_image(
    resolver: Resolver,
    building: Annotated[str, Query(min_length=1)],
    floor: Annotated[str, Query(min_length=1)],
) -> FloorPlanImageRead:
    resolved = resolver.resolve_image(building, floor)
    return FloorPlanImageRead(url=resolved.url, is_placeholder=resolved.is_placeholder)


@router.get("", response_model=list[FloorPlanRead])
def list_floor_plans(db: DbSession, storage: Storage) -> list[FloorPlanRead]:
    return [_serialize(plan, storage) for plan in active_floor_plans(db)]


@router.post(
    "",
    response_model=FloorPlanRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token), Depends(_bind_upload_rate_limit)],
)
@limiter.limit(_upload_rate_limit)
async def create_floor_plan(
    request: Request,
    response: Response,
    db: DbSession,
    storage: Storage,
    file: Annotated[UploadFile, File()],
    building_name: Annotated[str, Form()],
    floor_level: Annotated[str, Form()],
    description: Annotated[str | None, Form()] = None,
    uploaded_by: Annotated[str | None, Form()] = None,
) -> FloorPlanRead:
    content = await file.read()
    try:
        plan = upload_floor_plan(
            db,
            storage,
            building=building_name,
            floor=floor_level,
            filename=file.filename or "floorplan",
            content=content,
            mime_type=file.content_type or "",
            description=(description or "").strip() or None,
            uploaded_by=(uploaded_by or "").strip() or None,
        )
    except FloorPlanValidationError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except FloorPlanConflictError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StorageUnavailableError as exc:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return _serialize(plan, storage)


@router.delete(
    "/{floor_plan_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin_token)],
)
def remove_floor_plan(floor_plan_id: str, db: DbSession, storage: Storage) -> Response:
    try:
        delete_floor_plan(db, storage, floor_plan_id)
    except FloorPlanNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Floor plan not found") from exc
    except StorageUnavailableError as exc:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
