"""API router aggregation."""

from fastapi import APIRouter

from src.api.admin import admin_router
from src.api.auth import router as auth_router
from src.api.carriers import router as carriers_router
from src.api.deals import router as deals_router
from src.api.health import router as health_router
from src.api.hierarchy import router as hierarchy_router
from src.api.payouts import router as payouts_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(deals_router)
api_router.include_router(payouts_router)
api_router.include_router(hierarchy_router)
api_router.include_router(carriers_router)
api_router.include_router(admin_router)

__all__ = ["api_router"]
