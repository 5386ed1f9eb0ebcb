"""Admin API router aggregation."""

from fastapi import APIRouter

from src.api.admin.people import router as people_router

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(people_router)

__all__ = ["admin_router"]
