"""Prometheus metrics instrumentation helpers."""

from __future__ import annotations

import logging
from typing import Final

from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from sqlalchemy.engine import Engine

logger = logging.getLogger("app.metrics")

DB_POOL_IN_USE: Final[Gauge] = Gauge(
    "db_pool_connections_in_use",
    "Number of database connections currently checked out from the pool.",
)
PHOTO_LOCATION_UPDATES: Final[Counter] = Counter(
    "photo_location_updates_total",
    "Photo location updates handled by the API, by outcome.",
    ["outcome"],
)
FLOOR_PLAN_FALLBACKS: Final[Counter] = Counter(
    "floor_plan_resolution_fallbacks_total",
    "Floor-plan lookups that degraded to defaults or placeholders, by reason.",
    ["lookup", "reason"],
)


def _pool_metrics_recorder(engine: Engine):
    def _record(_: metrics.Info) -> None:
        checked_out_accessor = getattr(engine.pool, "checkedout", None)
        if not callable(checked_out_accessor):
            return
        try:
            DB_POOL_IN_USE.set(float(checked_out_accessor()))
        except (TypeError, ValueError):
            logger.debug("Unable to sample pool usage", exc_info=True)

    return _record


def setup_metrics(app: FastAPI, engine: Engine) -> Instrumentator:
    """Register Prometheus instrumentation and expose ``/metrics``."""

    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
    )
    instrumentator.add(metrics.default())
    instrumentator.add(_pool_metrics_recorder(engine))

    instrumentator.instrument(app)
    instrumentator.expose(app, include_in_schema=False)
    return instrumentator


__all__ = [
    "DB_POOL_IN_USE",
    "FLOOR_PLAN_FALLBACKS",
    "PHOTO_LOCATION_UPDATES",
    "setup_metrics",
]
