"""Three-step location capture: building, floor, then a pin on the plan.

The session is the headless model behind the capture modal. It owns the
zoom controller and the current pin, fetches choices from a
:class:`~app.capture.catalog.FloorPlanCatalog`, and ends in exactly one
:class:`CaptureResult`.

Each building or floor change bumps a generation counter; a catalog
response is applied only while its generation is still the latest one, so a
slow answer for an earlier selection never overwrites a newer selection.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Final, TypeVar

from app.capture.catalog import FloorPlanCatalog
from app.capture.zoom import ZoomPanController
from app.core.config import DEFAULT_FLOORS
from app.services.coordinates import BoundingRect, PercentPoint, point_to_percent

logger = logging.getLogger("app.capture")

T = TypeVar("T")

SKIP_FLOOR: Final = "unknown"
SKIP_BUILDING: Final = "Unknown Building"
DEFAULT_PLACEHOLDER_URL: Final = "/placeholder.svg"
NO_BUILDINGS_NOTICE: Final = "No floor plans available. Please upload floor plans first."


class CaptureState(str, Enum):
    SELECT_BUILDING = "select_building"
    SELECT_FLOOR = "select_floor"
    PLACE_PIN = "place_pin"
    CONFIRMED = "confirmed"
    SKIPPED = "skipped"


TERMINAL_STATES = frozenset({CaptureState.CONFIRMED, CaptureState.SKIPPED})


class CaptureStateError(RuntimeError):
    """Raised when an action is not allowed in the session's current state."""


@dataclass(frozen=True, slots=True)
class CaptureResult:
    x: float
    y: float
    floor: str
    building: str
    skipped: bool = False


SKIP_RESULT: Final = CaptureResult(
    x=0.0, y=0.0, floor=SKIP_FLOOR, building=SKIP_BUILDING, skipped=True
)


class LocationCaptureSession:
    def __init__(
        self,
        catalog: FloorPlanCatalog,
        *,
        placeholder_url: str = DEFAULT_PLACEHOLDER_URL,
        default_floors: Sequence[str] = DEFAULT_FLOORS,
    ) -> None:
        self.catalog = catalog
        self.placeholder_url = placeholder_url
        self.default_floors = list(default_floors)
        self.zoom = ZoomPanController()

        self.state = CaptureState.SELECT_BUILDING
        self.buildings: list[str] = []
        self.floors: list[str] = []
        self.building: str | None = None
        self.floor: str | None = None
        self.image_url: str | None = None
        self.image_is_placeholder = False
        self.image_rect: BoundingRect | None = None
        self.pin: PercentPoint | None = None
        self.result: CaptureResult | None = None
        self.notice: str | None = None

        self.loading_buildings = False
        self.loading_floors = False
        self.loading_image = False
        self._generation = 0
        self._buildings_generation = 0

    @property
    def is_closed(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def generation(self) -> int:
        return self._generation

    def _ensure_open(self) -> None:
        if self.is_closed:
            raise CaptureStateError(f"Capture session already {self.state.value}")

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and not self.is_closed

    async def _fetch(
        self,
        lookup: str,
        call: Callable[[], Awaitable[T]],
        fallback: T,
    ) -> T:
        try:
            return await call()
        except Exception:
            # Lookup failures degrade to the fallback value.
            logger.warning("Floor-plan %s lookup failed; using fallback", lookup, exc_info=True)
            return fallback

    def _clear_floor_selection(self) -> None:
        self.floor = None
        self.pin = None
        self.image_url = None
        self.image_is_placeholder = False
        self.image_rect = None
        self.loading_image = False
        self.zoom.reset_zoom()

    async def open(self) -> None:
        """Start (or restart) the flow at building selection and load buildings."""

        self.state = CaptureState.SELECT_BUILDING
        self.result = None
        self.notice = None
        self.building = None
        self.floors = []
        self.loading_floors = False
        self._clear_floor_selection()

        self._next_generation()
        self._buildings_generation += 1
        generation = self._buildings_generation
        self.loading_buildings = True
        buildings = await self._fetch("buildings", self.catalog.list_buildings, [])
        if generation != self._buildings_generation or self.is_closed:
            logger.debug("Discarding stale building list (generation %d)", generation)
            return
        self.loading_buildings = False
        self.buildings = list(buildings)
        if not self.buildings:
            self.notice = NO_BUILDINGS_NOTICE

    async def choose_building(self, building: str) -> None:
        self._ensure_open()
        self.building = building
        self.floors = []
        self._clear_floor_selection()
        self.state = CaptureState.SELECT_FLOOR

        generation = self._next_generation()
        self.loading_floors = True
        floors = await self._fetch(
            "floors",
            lambda: self.catalog.list_floors(building),
            self.default_floors,
        )
        if not self._is_current(generation):
            logger.debug("Discarding stale floors for %s (generation %d)", building, generation)
            return
        self.loading_floors = False
        self.floors = list(floors) or list(self.default_floors)

    def change_building(self) -> None:
        self._ensure_open()
        self._next_generation()
        self.building = None
        self.floors = []
        self.loading_floors = False
        self._clear_floor_selection()
        self.state = CaptureState.SELECT_BUILDING

    async def choose_floor(self, floor: str) -> None:
        self._ensure_open()
        if self.building is None:
            raise CaptureStateError("Choose a building before choosing a floor")
        building = self.building
        self._clear_floor_selection()
        self.floor = floor
        self.state = CaptureState.PLACE_PIN

        generation = self._next_generation()
        self.loading_image = True
        url = await self._fetch(
            "image",
            lambda: self.catalog.resolve_image_url(building, floor),
            None,
        )
        if not self._is_current(generation):
            logger.debug(
                "Discarding stale image for %s/%s (generation %d)", building, floor, generation
            )
            return
        self.loading_image = False
        self.image_url = url or self.placeholder_url
        self.image_is_placeholder = url is None

    def change_floor(self) -> None:
        self._ensure_open()
        if self.building is None:
            raise CaptureStateError("Choose a building before changing the floor")
        self._next_generation()
        self._clear_floor_selection()
        self.state = CaptureState.SELECT_FLOOR

    def image_loaded(self, rect: BoundingRect) -> None:
        """Record the rendered image box; clicks are ignored until this is known."""

        if self.state is not CaptureState.PLACE_PIN:
            return
        self.image_rect = rect if rect.is_laid_out else None

    def click_image(
        self,
        client_x: float,
        client_y: float,
        rect: BoundingRect | None = None,
    ) -> PercentPoint | None:
        """Place or move the single pending pin.

        ``rect`` is the image element's live bounding rect at click time; it
        defaults to the rect reported by :meth:`image_loaded`.
        """

        self._ensure_open()
        if self.state is not CaptureState.PLACE_PIN:
            raise CaptureStateError("Choose a floor before placing a pin")
        if not self.zoom.accept_click():
            return None

        live_rect = rect or self.image_rect
        if self.image_rect is None or live_rect is None or not live_rect.is_laid_out:
            logger.debug("Ignoring click before the floor-plan image has loaded")
            return None

        self.pin = point_to_percent(client_x, client_y, live_rect)
        return self.pin

    def clear_selection(self) -> None:
        self._ensure_open()
        self.pin = None

    def confirm(self) -> CaptureResult:
        self._ensure_open()
        if self.state is not CaptureState.PLACE_PIN or self.pin is None:
            raise CaptureStateError("Place a pin before confirming the location")
        if self.building is None or self.floor is None:
            raise CaptureStateError("Choose a building and floor before confirming")
        self.result = CaptureResult(
            x=self.pin.x, y=self.pin.y, floor=self.floor, building=self.building
        )
        self.state = CaptureState.CONFIRMED
        self._next_generation()
        return self.result

    def skip(self) -> CaptureResult:
        self._ensure_open()
        self.result = SKIP_RESULT
        self.state = CaptureState.SKIPPED
        self._next_generation()
        return self.result

    def dismiss(self) -> CaptureResult:
        """Close without confirming; completes the pending upload as skipped."""

        if self.is_closed:
            if self.result is None:
                raise CaptureStateError("Capture session closed without a result")
            return self.result
        return self.skip()


__all__ = [
    "CaptureResult",
    "CaptureState",
    "CaptureStateError",
    "LocationCaptureSession",
    "NO_BUILDINGS_NOTICE",
    "SKIP_BUILDING",
    "SKIP_FLOOR",
    "SKIP_RESULT",
]
