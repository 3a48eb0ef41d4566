"""Application entrypoint for the floor-plan geolocation API."""

from __future__ import annotations

import asyncio
import logging
from typing import cast

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.types import ExceptionHandler

from app.api.v1 import api_router
from app.core.config import Settings, get_settings
from app.core.db import Database
from app.core.limiter import limiter
from app.core.logging import RequestIDMiddleware, RequestLoggingMiddleware, configure_logging
from app.core.metrics import setup_metrics
from app.core.sentry import init_sentry
from app.services.storage import (
    ObjectStorage,
    S3Client,
    StorageUnavailableError,
    build_s3_client,
)


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    s3_client: S3Client | None = None,
) -> FastAPI:
    """Build the API with its own database and object storage.

    ``database`` and ``s3_client`` default to ones built from ``settings``.
    """

    settings = settings or get_settings()
    configure_logging(settings)
    init_sentry(settings)

    logger = logging.getLogger("app.lifecycle")

    database = database or Database.from_settings(settings)
    storage = ObjectStorage(s3_client or build_s3_client(settings), settings)

    app = FastAPI(title="School Walk Floor Plans API", version="0.3.0")
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage

    app.state.limiter = limiter
    app.add_exception_handler(
        RateLimitExceeded,
        cast(ExceptionHandler, _rate_limit_exceeded_handler),
    )
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_min_length)

    allow_origins = list(settings.cors_allowed_origins) or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(api_router)

    if settings.metrics_enabled:
        app.state.instrumentator = setup_metrics(app, database.engine)

    def _prepare_buckets() -> None:
        for bucket in (settings.floor_plans_bucket, settings.photos_bucket):
            try:
                storage.ensure_bucket_exists(bucket)
            except StorageUnavailableError:
                logger.warning("Storage bucket %s is not available yet", bucket, exc_info=True)

    @app.on_event("startup")
    async def _on_startup() -> None:
        await asyncio.to_thread(_prepare_buckets)
        logger.info("Application startup complete", extra={"environment": settings.app_env})

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        database.dispose()
        logger.info("Application shutdown complete")

    return app


app = create_app()
