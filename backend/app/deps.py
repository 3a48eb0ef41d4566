from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.db import get_db
from app.services.floorplans import FloorPlanResolver
from app.services.storage import ObjectStorage, get_storage

logger = logging.getLogger("app.auth")

auth_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_admin_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(auth_scheme)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> None:
    """Guard catalog writes with ``ADMIN_API_TOKEN`` when one is configured."""

    expected = settings.admin_api_token
    if expected is None:
        return
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if not hmac.compare_digest(credentials.credentials.encode(), expected.encode()):
        logger.warning("Rejected request with invalid admin token")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin required")


def get_resolver(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> FloorPlanResolver:
    return FloorPlanResolver(db, storage, settings)


__all__ = [
    "auth_scheme",
    "get_app_settings",
    "get_resolver",
    "require_admin_token",
]
