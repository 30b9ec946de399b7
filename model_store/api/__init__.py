"""API routers"""
from fastapi import APIRouter

from .assets import router as assets_router
from .uploads import router as uploads_router

router = APIRouter()
router.include_router(uploads_router)
router.include_router(assets_router)

__all__ = ["router"]
