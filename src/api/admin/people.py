"""Admin people (hierarchy membership) API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_owner
from src.db import get_db
from src.models import AuditAction, LadderTier, User
from src.schemas.user import PersonCreate, PersonListResponse, PersonResponse, PersonUpdate
from src.services.hierarchy import PersonDirectory, is_in_downline
from src.utils.audit import get_client_ip, log_action
from src.utils.password import hash_password

router = APIRouter(prefix="/people")

# Columns that cannot be cleared; a null in a PATCH leaves them unchanged
REQUIRED_PERSON_FIELDS = ("first_name", "last_name", "tier", "is_active", "is_admin")


async def _check_upline(
    db: AsyncSession,
    person_id: Optional[int],
    upline_id: Optional[int],
) -> None:
    """Reject an upline that is missing, the person itself, or below the person."""
    if upline_id is None:
        return

    if person_id is not None and upline_id == person_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A person cannot be their own upline",
        )

    directory = await PersonDirectory.load(db)
    if upline_id not in directory:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upline not found",
        )

    if person_id is not None and is_in_downline(upline_id, person_id, directory):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upline is in this person's downline",
        )


@router.get("", response_model=PersonListResponse)
async def list_people(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_owner),
    tier: Optional[LadderTier] = Query(None),
    upline_id: Optional[int] = Query(None),
    active_only: bool = Query(False),
):
    """List people with optional tier / upline filters."""
    query = select(User)

    if tier is not None:
        query = query.where(User.tier == tier)

    if upline_id is not None:
        query = query.where(User.upline_id == upline_id)

    if active_only:
        query = query.where(User.is_active == True)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    result = await db.execute(query.order_by(User.first_name, User.last_name, User.id))
    people = result.scalars().all()

    return PersonListResponse(
        items=[PersonResponse.model_validate(person) for person in people],
        total=total or 0,
    )


@router.post("", response_model=PersonResponse, status_code=status.HTTP_201_CREATED)
async def create_person(
    request: Request,
    data: PersonCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_owner),
):
    """Create a person and attach them to an upline."""
    existing = await db.execute(
        select(User).where(User.username == data.username)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists",
        )

    await _check_upline(db, None, data.upline_id)

    person = User(
        username=data.username,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        tier=data.tier,
        upline_id=data.upline_id,
        manager_id=data.manager_id,
        is_admin=data.is_admin,
        is_active=True,
    )
    db.add(person)
    await db.flush()

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_PERSON,
        target_type="person",
        target_id=person.id,
        action_metadata={
            "username": data.username,
            "tier": data.tier.value,
            "upline_id": data.upline_id,
        },
        ip_address=get_client_ip(request),
    )

    await db.commit()
    await db.refresh(person)

    return PersonResponse.model_validate(person)


@router.patch("/{person_id}", response_model=PersonResponse)
async def update_person(
    request: Request,
    person_id: int,
    data: PersonUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_owner),
):
    """Update a person. Tier and upline changes apply to future deals only."""
    person = await db.get(User, person_id)

    if not person:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Person not found",
        )

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_PERSON_FIELDS
    }

    if "upline_id" in changes:
        await _check_upline(db, person_id, changes["upline_id"])

    password = changes.pop("password", None)
    if password:
        person.password_hash = hash_password(password)

    for field, value in changes.items():
        setattr(person, field, value)

    metadata = {
        key: (value.value if isinstance(value, LadderTier) else value)
        for key, value in changes.items()
    }
    if password:
        metadata["password_changed"] = True

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_PERSON,
        target_type="person",
        target_id=person_id,
        action_metadata=metadata,
        ip_address=get_client_ip(request),
    )

    await db.commit()
    await db.refresh(person)

    return PersonResponse.model_validate(person)
