"""
Pytest configuration and fixtures.
"""

import os

# Point the application engine at SQLite before any src module is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from src.models import Base, LadderTier, User
from src.services.hierarchy import HierarchyMember, PersonDirectory


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


# ── People ─────────────────────────────────────────────────


def member(id: int, level: int, upline_id: Optional[int] = None, name: Optional[str] = None, is_active: bool = True):
    """In-memory hierarchy member for the pure services."""
    return HierarchyMember(
        id=id,
        name=name or f"Person {id}",
        level=level,
        upline_id=upline_id,
        is_active=is_active,
    )


def directory_of(*members: HierarchyMember) -> PersonDirectory:
    return PersonDirectory(members)


async def add_person(
    db: AsyncSession,
    username: str,
    tier: LadderTier,
    upline: Optional[User] = None,
    is_admin: bool = False,
    is_active: bool = True,
) -> User:
    person = User(
        username=username,
        password_hash="not-a-bcrypt-hash",
        first_name=username.replace("_", " ").title(),
        last_name="",
        tier=tier,
        upline_id=upline.id if upline else None,
        is_admin=is_admin,
        is_active=is_active,
    )
    db.add(person)
    await db.flush()
    return person


@pytest_asyncio.fixture
async def ladder(db_session):
    """
    AO <- GA <- Prodigy, plus a BA recruited directly by the AO.

    Returns a dict of username -> User.
    """
    ao = await add_person(db_session, "olivia_ao", LadderTier.AO, is_admin=True)
    ga = await add_person(db_session, "gary_ga", LadderTier.GA, ao)
    prodigy = await add_person(db_session, "pia_prodigy", LadderTier.PRODIGY, ga)
    ba = await add_person(db_session, "bea_ba", LadderTier.BA, ao)
    await db_session.commit()
    return {"ao": ao, "ga": ga, "prodigy": prodigy, "ba": ba}
