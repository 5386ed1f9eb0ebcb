"""
Upline - Agency Commission Back-Office

Main FastAPI application with:
- Cookie/Bearer JWT authentication
- Deal recording with multi-level commission splits
- Weekly payout views for agents and team leaders
- Hierarchy and carrier administration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import select

from src.api import api_router
from src.auth.middleware import AuthMiddleware
from src.config import settings
from src.db import get_db_context
from src.models import LadderTier, User
from src.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def ensure_owner_account(db) -> User:
    """Create the agency owner (AO, admin) account if no AO exists yet."""
    result = await db.execute(
        select(User).where(User.tier == LadderTier.AO).order_by(User.id).limit(1)
    )
    owner = result.scalar_one_or_none()

    if not owner:
        logger.info("Creating owner account...")
        owner = User(
            username=settings.owner_username,
            password_hash=hash_password(settings.owner_password),
            first_name="Agency",
            last_name="Owner",
            tier=LadderTier.AO,
            is_admin=True,
            is_active=True,
        )
        db.add(owner)
        await db.flush()
        logger.info(f"Owner account created: {settings.owner_username}")

    return owner


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the AO owner account if none exists
    """
    logger.info("Starting Upline...")

    async with get_db_context() as db:
        await ensure_owner_account(db)

    logger.info("Upline started successfully!")

    yield

    logger.info("Shutting down Upline...")


# Create FastAPI application
app = FastAPI(
    title="Upline",
    description="Agency commission back-office",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Add authentication middleware
app.add_middleware(AuthMiddleware)

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root():
    return {"service": "upline", "docs": "/docs"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
