from fastapi import APIRouter

from . import floorplans, gallery, health, photos

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["health"])
api_router.include_router(floorplans.router)
api_router.include_router(photos.router)
api_router.include_router(gallery.router)

__all__ = ["api_router"]
