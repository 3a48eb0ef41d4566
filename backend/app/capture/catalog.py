"""HTTP client for the floor-plan catalog and the photo location endpoint."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger("app.capture")


class CatalogError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class FloorPlanCatalog(Protocol):
    async def list_buildings(self) -> list[str]: ...

    async def list_floors(self, building: str) -> list[str]: ...

    async def resolve_image_url(self, building: str, floor: str) -> str | None: ...


class LocationGateway(Protocol):
    async def update_location(
        self,
        photo_id: str,
        x: float,
        y: float,
        *,
        floor: str | None = None,
        building: str | None = None,
        skipped: bool = False,
    ) -> dict[str, Any]: ...


class CaptureSettings(BaseSettings):
    api_base_url: str = Field("http://localhost:8000/api/v1", alias="CAPTURE_API_BASE_URL")
    timeout_seconds: float = Field(10.0, alias="CAPTURE_TIMEOUT_SECONDS")
    connect_timeout_seconds: float = Field(5.0, alias="CAPTURE_CONNECT_TIMEOUT_SECONDS")

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}


class FloorPlanApiClient:
    """Talk to ``/floorplans`` and ``/photos/location`` over one ``httpx.AsyncClient``.

    Pass ``client`` to share a connection pool (or a mock transport);
    otherwise the instance owns its client and must be closed with
    :meth:`aclose` or used as an async context manager.
    """

    def __init__(
        self,
        settings: CaptureSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or CaptureSettings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=httpx.Timeout(
                self.settings.timeout_seconds,
                connect=self.settings.connect_timeout_seconds,
            ),
        )

    async def __aenter__(self) -> "FloorPlanApiClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise CatalogError(f"Unable to reach floor-plan service: {exc}") from exc

        if response.status_code >= 400:
            message = "Floor-plan service error"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message = str(body.get("error") or body.get("detail") or message)
            raise CatalogError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise CatalogError("Invalid response from floor-plan service") from exc

    async def list_buildings(self) -> list[str]:
        payload = await self._request("GET", "/floorplans/buildings")
        if not isinstance(payload, list):
            raise CatalogError("Unexpected buildings response format")
        return [str(item) for item in payload]

    async def list_floors(self, building: str) -> list[str]:
        payload = await self._request(
            "GET", "/floorplans/floors", params={"building": building}
        )
        if not isinstance(payload, list):
            raise CatalogError("Unexpected floors response format")
        return [str(item) for item in payload]

    async def resolve_image_url(self, building: str, floor: str) -> str | None:
        payload = await self._request(
            "GET", "/floorplans/image", params={"building": building, "floor": floor}
        )
        if not isinstance(payload, dict):
            raise CatalogError("Unexpected image response format")
        if payload.get("is_placeholder"):
            return None
        url = payload.get("url")
        return str(url) if url else None

    async def update_location(
        self,
        photo_id: str,
        x: float,
        y: float,
        *,
        floor: str | None = None,
        building: str | None = None,
        skipped: bool = False,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"photoId": photo_id, "x": x, "y": y}
        if floor is not None:
            body["floor"] = floor
        if building is not None:
            body["building"] = building
        if skipped:
            body["skipped"] = True

        payload = await self._request("PATCH", "/photos/location", json=body)
        if not isinstance(payload, dict) or not isinstance(payload.get("record"), dict):
            raise CatalogError("Unexpected location update response format")
        return payload["record"]


__all__ = [
    "CaptureSettings",
    "CatalogError",
    "FloorPlanApiClient",
    "FloorPlanCatalog",
    "LocationGateway",
]
