from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.config import DEFAULT_FLOORS, Settings
from app.core.db import Database
from app.core.limiter import RATE_LIMIT_KEY_HEADER
from app.main import create_app

from tests.utils import FakeS3Client, create_walker

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _upload(
    client: TestClient,
    building: str = "Main Building",
    floor: str = "first",
    *,
    headers: dict[str, str] | None = None,
    content_type: str = "image/png",
):
    return client.post(
        "/api/v1/floorplans",
        data={"building_name": building, "floor_level": floor, "description": "Scanned plan"},
        files={"file": ("plan.png", PNG_BYTES, content_type)},
        headers={RATE_LIMIT_KEY_HEADER: str(uuid4()), **(headers or {})},
    )


def test_upload_and_list_floor_plans(client: TestClient, s3_client: FakeS3Client) -> None:
    response = _upload(client)

    assert response.status_code == 201, response.text
    created = response.json()
    assert created["building_name"] == "Main Building"
    assert created["floor_level"] == "first"
    assert created["version"] == 1
    assert created["description"] == "Scanned plan"
    assert created["url"].startswith("https://floor-plans.s3.us-east-1.amazonaws.com/main-building-first-")
    assert "floor-plans" in s3_client.buckets

    listing = client.get("/api/v1/floorplans")
    assert listing.status_code == 200
    assert [plan["id"] for plan in listing.json()] == [created["id"]]


def test_reupload_replaces_active_plan(client: TestClient) -> None:
    first = _upload(client).json()
    second = _upload(client).json()

    assert second["version"] == 2
    listing = client.get("/api/v1/floorplans").json()
    assert [plan["id"] for plan in listing] == [second["id"]]
    image = client.get(
        "/api/v1/floorplans/image", params={"building": "Main Building", "floor": "first"}
    ).json()
    assert image == {"url": second["url"], "is_placeholder": False}
    assert first["url"] != second["url"]


def test_upload_rejects_non_images(client: TestClient) -> None:
    response = _upload(client, content_type="application/pdf")
    assert response.status_code == 400
    assert response.json()["detail"] == "Floor plans must be image files"


def test_buildings_and_floors_endpoints(client: TestClient, db_session: Session) -> None:
    _upload(client, "Main Building", "second")
    _upload(client, "Main Building", "first")
    create_walker(db_session, school="Lincoln Elementary")

    buildings = client.get("/api/v1/floorplans/buildings")
    assert buildings.json() == ["Lincoln Elementary", "Main Building"]

    floors = client.get("/api/v1/floorplans/floors", params={"building": "Main Building"})
    assert floors.json() == ["first", "second"]

    defaults = client.get("/api/v1/floorplans/floors", params={"building": "Lincoln Elementary"})
    assert defaults.json() == list(DEFAULT_FLOORS)


def test_image_endpoint_returns_placeholder_for_missing_plan(client: TestClient) -> None:
    response = client.get(
        "/api/v1/floorplans/image", params={"building": "Lincoln Elementary", "floor": "third"}
    )
    assert response.status_code == 200
    assert response.json() == {"url": "/placeholder.svg", "is_placeholder": True}


def test_delete_floor_plan(client: TestClient, s3_client: FakeS3Client) -> None:
    created = _upload(client).json()

    response = client.delete(f"/api/v1/floorplans/{created['id']}")
    assert response.status_code == 204
    assert len(s3_client.deleted) == 1
    assert client.get("/api/v1/floorplans").json() == []
    assert client.delete(f"/api/v1/floorplans/{created['id']}").status_code == 404


def test_upload_requires_admin_token_when_configured(
    settings: Settings, database: Database, s3_client: FakeS3Client
) -> None:
    guarded = create_app(
        settings.model_copy(update={"admin_api_token": "s3cret"}),
        database=database,
        s3_client=s3_client,
    )
    with TestClient(guarded) as client:
        assert _upload(client).status_code == 401
        authorized = _upload(client, headers={"Authorization": "Bearer s3cret"})
        assert authorized.status_code == 201


def test_upload_rate_limit(client: TestClient) -> None:
    key = f"upload-{uuid4()}"
    statuses = [
        _upload(client, floor=f"floor-{index}", headers={RATE_LIMIT_KEY_HEADER: key}).status_code
        for index in range(31)
    ]
    assert statuses[:30] == [201] * 30
    assert statuses[30] == 429


def test_upload_rate_limit_follows_app_settings(settings: Settings, database: Database) -> None:
    strict = settings.model_copy(update={"floor_plan_upload_rate_limit": "2/minute"})
    app = create_app(strict, database=database, s3_client=FakeS3Client())
    key = f"upload-{uuid4()}"

    with TestClient(app) as client:
        statuses = [
            _upload(client, floor=f"floor-{index}", headers={RATE_LIMIT_KEY_HEADER: key}).status_code
            for index in range(3)
        ]

    assert statuses == [201, 201, 429]
