from .catalog import (
    CaptureSettings,
    CatalogError,
    FloorPlanApiClient,
    FloorPlanCatalog,
    LocationGateway,
)
from .flow import CaptureOutcome, complete_capture
from .session import (
    CaptureResult,
    CaptureState,
    CaptureStateError,
    LocationCaptureSession,
    SKIP_RESULT,
)
from .zoom import ZoomPanController, ZoomState

__all__ = [
    "CaptureOutcome",
    "CaptureResult",
    "CaptureSettings",
    "CaptureState",
    "CaptureStateError",
    "CatalogError",
    "FloorPlanApiClient",
    "FloorPlanCatalog",
    "LocationCaptureSession",
    "LocationGateway",
    "SKIP_RESULT",
    "ZoomPanController",
    "ZoomState",
    "complete_capture",
]
