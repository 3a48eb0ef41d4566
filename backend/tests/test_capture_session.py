from __future__ import annotations

import asyncio

import pytest

from app.capture.catalog import CatalogError
from app.capture.session import (
    NO_BUILDINGS_NOTICE,
    SKIP_RESULT,
    CaptureResult,
    CaptureState,
    CaptureStateError,
    LocationCaptureSession,
)
from app.core.config import DEFAULT_FLOORS
from app.services.coordinates import BoundingRect, PercentPoint

RECT = BoundingRect(left=0.0, top=0.0, width=1000.0, height=500.0)


class FakeCatalog:
    def __init__(
        self,
        *,
        buildings: list[str] | None = None,
        floors: dict[str, list[str]] | None = None,
        images: dict[tuple[str, str], str] | None = None,
    ) -> None:
        self.buildings = buildings if buildings is not None else ["Lincoln Elementary", "Main Building"]
        self.floors = floors or {}
        self.images = images or {}
        self.gates: dict[str, asyncio.Event] = {}
        self.fail: set[str] = set()

    async def _maybe_wait(self, key: str) -> None:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()

    async def list_buildings(self) -> list[str]:
        if "buildings" in self.fail:
            raise CatalogError("catalog down", status_code=503)
        return list(self.buildings)

    async def list_floors(self, building: str) -> list[str]:
        await self._maybe_wait(building)
        if "floors" in self.fail:
            raise CatalogError("catalog down", status_code=503)
        return list(self.floors.get(building, []))

    async def resolve_image_url(self, building: str, floor: str) -> str | None:
        await self._maybe_wait(f"{building}/{floor}")
        if "image" in self.fail:
            raise CatalogError("catalog down", status_code=503)
        return self.images.get((building, floor))


def _run(coro):
    return asyncio.run(coro)


def _session(catalog: FakeCatalog) -> LocationCaptureSession:
    return LocationCaptureSession(catalog, placeholder_url="/placeholder.svg")


def test_full_flow_confirms_pin() -> None:
    catalog = FakeCatalog(
        floors={"Lincoln Elementary": ["first", "second"]},
        images={("Lincoln Elementary", "second"): "https://cdn.test/lincoln-second.png"},
    )
    session = _session(catalog)

    async def scenario() -> CaptureResult:
        await session.open()
        assert session.buildings == ["Lincoln Elementary", "Main Building"]
        await session.choose_building("Lincoln Elementary")
        assert session.state is CaptureState.SELECT_FLOOR
        assert session.floors == ["first", "second"]
        await session.choose_floor("second")
        assert session.image_url == "https://cdn.test/lincoln-second.png"
        assert session.image_is_placeholder is False
        session.image_loaded(RECT)
        session.click_image(427.0, 440.5)
        return session.confirm()

    result = _run(scenario())
    assert result.x == pytest.approx(42.7)
    assert result.y == pytest.approx(88.1)
    assert (result.floor, result.building, result.skipped) == ("second", "Lincoln Elementary", False)
    assert session.state is CaptureState.CONFIRMED


def test_second_click_replaces_pin() -> None:
    session = _session(FakeCatalog())

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Main Building")
        await session.choose_floor("first")

    _run(scenario())
    session.image_loaded(RECT)
    session.click_image(100.0, 100.0)
    session.click_image(500.0, 250.0)
    assert session.pin is not None
    assert (session.pin.x, session.pin.y) == (50.0, 50.0)


def test_clicks_before_image_load_are_ignored() -> None:
    session = _session(FakeCatalog())

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Main Building")
        await session.choose_floor("first")

    _run(scenario())
    assert session.click_image(10.0, 10.0) is None
    assert session.pin is None
    with pytest.raises(CaptureStateError):
        session.confirm()


def test_empty_catalog_shows_notice_and_allows_skip() -> None:
    session = _session(FakeCatalog(buildings=[]))
    _run(session.open())

    assert session.buildings == []
    assert session.notice == NO_BUILDINGS_NOTICE
    assert session.skip() == SKIP_RESULT
    assert session.state is CaptureState.SKIPPED


def test_lookup_failures_degrade_to_defaults() -> None:
    catalog = FakeCatalog()
    catalog.fail = {"floors", "image"}
    session = _session(catalog)

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Main Building")
        assert session.floors == list(DEFAULT_FLOORS)
        await session.choose_floor("third")

    _run(scenario())
    assert session.image_url == "/placeholder.svg"
    assert session.image_is_placeholder is True


def test_building_without_floor_plans_gets_default_floors() -> None:
    session = _session(FakeCatalog())

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Lincoln Elementary")

    _run(scenario())
    assert session.floors == list(DEFAULT_FLOORS)


def test_change_building_clears_floor_and_pin() -> None:
    session = _session(FakeCatalog())

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Main Building")
        await session.choose_floor("first")

    _run(scenario())
    session.image_loaded(RECT)
    session.zoom.zoom_in()
    session.click_image(200.0, 200.0)

    session.change_building()
    assert session.state is CaptureState.SELECT_BUILDING
    assert session.building is None
    assert session.floor is None
    assert session.floors == []
    assert session.pin is None
    assert session.zoom.scale == 1.0


def test_change_floor_keeps_building() -> None:
    session = _session(FakeCatalog())

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Main Building")
        await session.choose_floor("first")

    _run(scenario())
    session.change_floor()
    assert session.state is CaptureState.SELECT_FLOOR
    assert session.building == "Main Building"
    assert session.floor is None


def test_stale_floor_response_is_discarded() -> None:
    catalog = FakeCatalog(
        floors={"Slow School": ["basement"], "Main Building": ["first", "second"]},
    )
    session = _session(catalog)

    async def scenario() -> None:
        await session.open()
        catalog.gates["Slow School"] = asyncio.Event()
        slow = asyncio.create_task(session.choose_building("Slow School"))
        await asyncio.sleep(0)
        await session.choose_building("Main Building")
        catalog.gates["Slow School"].set()
        await slow

    _run(scenario())
    assert session.building == "Main Building"
    assert session.floors == ["first", "second"]
    assert session.loading_floors is False


def test_stale_image_response_is_discarded() -> None:
    catalog = FakeCatalog(
        images={
            ("Main Building", "first"): "https://cdn.test/first.png",
            ("Main Building", "second"): "https://cdn.test/second.png",
        },
    )
    session = _session(catalog)

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Main Building")
        catalog.gates["Main Building/first"] = asyncio.Event()
        slow = asyncio.create_task(session.choose_floor("first"))
        await asyncio.sleep(0)
        await session.choose_floor("second")
        catalog.gates["Main Building/first"].set()
        await slow

    _run(scenario())
    assert session.floor == "second"
    assert session.image_url == "https://cdn.test/second.png"


def test_dismiss_completes_as_skip() -> None:
    session = _session(FakeCatalog())
    _run(session.open())

    result = session.dismiss()
    assert result.skipped is True
    assert (result.x, result.y, result.floor, result.building) == (
        0.0,
        0.0,
        "unknown",
        "Unknown Building",
    )
    assert session.dismiss() is result


def test_closed_session_rejects_input() -> None:
    session = _session(FakeCatalog())
    _run(session.open())
    session.skip()

    with pytest.raises(CaptureStateError):
        _run(session.choose_building("Main Building"))
    with pytest.raises(CaptureStateError):
        session.skip()


def test_pan_release_does_not_drop_pin() -> None:
    session = _session(FakeCatalog())

    async def scenario() -> None:
        await session.open()
        await session.choose_building("Main Building")
        await session.choose_floor("first")

    _run(scenario())
    session.image_loaded(RECT)
    session.zoom.zoom_in()
    session.zoom.begin_drag((5.0, 5.0), on_image=False)
    session.zoom.drag((40.0, 40.0))
    session.zoom.end_drag()

    assert session.click_image(300.0, 300.0) is None
    assert session.pin is None

    session.zoom.begin_drag((300.0, 300.0), on_image=True)
    assert session.click_image(300.0, 300.0) is not None
    assert session.pin is not None


def test_confirm_without_building_raises_state_error() -> None:
    session = _session(FakeCatalog())
    session.state = CaptureState.PLACE_PIN
    session.pin = PercentPoint(x=10.0, y=20.0)

    with pytest.raises(CaptureStateError):
        session.confirm()


def test_dismiss_of_closed_session_without_result_raises_state_error() -> None:
    session = _session(FakeCatalog())
    session.state = CaptureState.CONFIRMED

    with pytest.raises(CaptureStateError):
        session.dismiss()
