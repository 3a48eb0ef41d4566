"""Finish a photo upload with the location picked in a capture session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Final

from app.capture.catalog import CatalogError, LocationGateway
from app.capture.session import CaptureResult

logger = logging.getLogger("app.capture")

SAVE_FAILED_NOTICE: Final = (
    "Photo uploaded, but its location could not be saved. You can tag it again later."
)


@dataclass(frozen=True, slots=True)
class CaptureOutcome:
    result: CaptureResult
    record: dict[str, Any] | None
    saved: bool
    notice: str | None = None


async def complete_capture(
    gateway: LocationGateway,
    photo_id: str,
    result: CaptureResult,
) -> CaptureOutcome:
    """Persist ``result`` for ``photo_id``.

    The photo itself is already stored, so a failed location write is
    reported through ``notice`` instead of raising.
    """

    try:
        if result.skipped:
            record = await gateway.update_location(photo_id, result.x, result.y, skipped=True)
        else:
            record = await gateway.update_location(
                photo_id,
                result.x,
                result.y,
                floor=result.floor,
                building=result.building,
            )
    except CatalogError as exc:
        logger.warning(
            "Failed to save photo location",
            extra={"photo_id": photo_id, "status_code": exc.status_code, "error": exc.message},
        )
        return CaptureOutcome(result=result, record=None, saved=False, notice=SAVE_FAILED_NOTICE)

    return CaptureOutcome(result=result, record=record, saved=True)


__all__ = ["CaptureOutcome", "SAVE_FAILED_NOTICE", "complete_capture"]
