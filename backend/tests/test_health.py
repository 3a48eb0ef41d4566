from __future__ import annotations

from collections.abc import Iterator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.api.v1 import health
from app.core.config import Settings
from app.core.db import Database
from app.main import create_app

from tests.utils import FakeS3Client


def test_health_live(client: TestClient) -> None:
    response = client.get("/api/v1/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_ready(client: TestClient) -> None:
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_ready_reports_unreachable_database(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        health, "_database_ready", lambda _database: (False, "database_unreachable")
    )

    response = client.get("/api/v1/health/ready")

    assert response.status_code == 503
    assert response.json() == {"detail": "database_unreachable"}


def test_database_ready_handles_connection_errors() -> None:
    class BrokenEngine:
        def connect(self):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    database = SimpleNamespace(engine=BrokenEngine())

    assert health._database_ready(database) == (False, "database_unreachable")


def test_alembic_heads_are_discovered() -> None:
    heads = health._alembic_heads()
    assert heads == {"20250915_0002_photo_building_and_active_plan"}


def test_startup_creates_storage_buckets(client: TestClient, s3_client: FakeS3Client) -> None:
    assert s3_client.buckets == {"floor-plans", "survey-photos"}


def test_responses_carry_request_id(client: TestClient) -> None:
    echoed = client.get("/api/v1/health/live", headers={"X-Request-ID": "walk-123"})
    minted = client.get("/api/v1/health/live")

    assert echoed.headers["X-Request-ID"] == "walk-123"
    assert len(minted.headers["X-Request-ID"]) == 32


@pytest.fixture(scope="module")
def metrics_client(tmp_path_factory: pytest.TempPathFactory) -> Iterator[TestClient]:
    # The default Prometheus registry only accepts one instrumented app per process.
    db_path = tmp_path_factory.mktemp("metrics") / "metrics.db"
    settings = Settings(
        DATABASE_URL=f"sqlite+pysqlite:///{db_path}",
        APP_ENV="test",
        LOG_JSON=False,
        METRICS_ENABLED=True,
    )
    database = Database.from_settings(settings)
    database.create_all()
    app = create_app(settings, database=database, s3_client=FakeS3Client())
    with TestClient(app) as client:
        yield client
    database.dispose()


def test_metrics_endpoint_exposes_known_metrics(metrics_client: TestClient) -> None:
    metrics_client.get("/api/v1/health/live")
    metrics_client.get("/api/v1/floorplans/floors", params={"building": "Nowhere"})

    response = metrics_client.get("/metrics")

    assert response.status_code == 200
    body = response.text
    assert "http_requests_total" in body
    assert "db_pool_connections_in_use" in body
    assert "floor_plan_resolution_fallbacks_total" in body
