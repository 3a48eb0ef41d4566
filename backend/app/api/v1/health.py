from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.db import Database, get_database

logger = logging.getLogger("app.health")

router = APIRouter(prefix="/health")

ALEMBIC_CONFIG_PATH = Path(__file__).resolve().parents[3] / "alembic.ini"


@router.get("/live", tags=["health"])
def live() -> dict[str, str]:
    """Simple liveness probe."""

    return {"status": "ok"}


@router.get("/ready", tags=["health"])
def ready(database: Annotated[Database, Depends(get_database)]) -> dict[str, str]:
    """Readiness probe verifying database connectivity and migrations."""

    is_ready, detail = _database_ready(database)
    if not is_ready:
        raise HTTPException(status_code=503, detail=detail)
    return {"status": "ok"}


def _database_ready(database: Database) -> tuple[bool, str]:
    versions: set[str] = set()
    try:
        with database.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

            # Test and local sqlite databases are created from metadata, not migrations.
            if database.engine.dialect.name == "sqlite":
                return True, "ok"

            try:
                versions = {
                    row[0]
                    for row in connection.execute(text("SELECT version_num FROM alembic_version"))
                }
            except SQLAlchemyError:
                logger.exception("Failed to read alembic_version table")
                return False, "missing_alembic_version"
    except SQLAlchemyError:
        logger.exception("Database connection failed during readiness check")
        return False, "database_unreachable"

    expected = _alembic_heads()
    if not expected:
        logger.warning("No Alembic heads detected; treating database as ready")
        return True, "ok"

    if expected.issubset(versions):
        return True, "ok"

    logger.error(
        "Database not on latest migration",
        extra={"expected": sorted(expected), "found": sorted(versions)},
    )
    return False, "pending_migrations"


@lru_cache
def _alembic_heads() -> set[str]:
    if not ALEMBIC_CONFIG_PATH.exists():
        logger.error("Alembic configuration not found", extra={"path": str(ALEMBIC_CONFIG_PATH)})
        return set()

    config = Config(str(ALEMBIC_CONFIG_PATH))
    config.set_main_option("script_location", str(ALEMBIC_CONFIG_PATH.parent / "migrations"))
    try:
        script = ScriptDirectory.from_config(config)
        return set(script.get_heads())
    except Exception:
        logger.exception("Unable to determine Alembic head revisions")
        return set()


__all__ = ["router"]
