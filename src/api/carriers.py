"""Carrier API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_owner
from src.db import get_db
from src.models import AuditAction, Carrier, User
from src.schemas.carrier import CarrierCreate, CarrierResponse, CarrierUpdate
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/carriers", tags=["Carriers"])


def _rate(value):
    return str(value) if value is not None else None


@router.get("", response_model=List[CarrierResponse])
async def list_carriers(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    active_only: bool = Query(True),
):
    """Carriers with their FYC rates, alphabetical."""
    query = select(Carrier)
    if active_only:
        query = query.where(Carrier.is_active == True)

    result = await db.execute(query.order_by(Carrier.name))
    return [CarrierResponse.model_validate(c) for c in result.scalars().all()]


@router.post("", response_model=CarrierResponse, status_code=status.HTTP_201_CREATED)
async def create_carrier(
    request: Request,
    data: CarrierCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_owner),
):
    """Add a carrier. Names are unique case-insensitively."""
    existing = await db.execute(
        select(Carrier).where(func.lower(Carrier.name) == data.name.strip().lower())
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Carrier already exists",
        )

    carrier = Carrier(
        name=data.name.strip(),
        insurance_kinds=[kind.value for kind in data.insurance_kinds],
        life_fyc=data.life_fyc,
        health_fyc=data.health_fyc,
        is_active=True,
    )
    db.add(carrier)
    await db.flush()

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_CARRIER,
        target_type="carrier",
        target_id=carrier.id,
        action_metadata={
            "name": carrier.name,
            "life_fyc": _rate(data.life_fyc),
            "health_fyc": _rate(data.health_fyc),
        },
        ip_address=get_client_ip(request),
    )

    await db.commit()
    await db.refresh(carrier)

    return CarrierResponse.model_validate(carrier)


@router.patch("/{carrier_id}", response_model=CarrierResponse)
async def update_carrier(
    request: Request,
    carrier_id: int,
    data: CarrierUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_owner),
):
    """Update a carrier. Existing deals keep the rate they were recorded with."""
    carrier = await db.get(Carrier, carrier_id)

    if not carrier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Carrier not found",
        )

    changes = data.model_dump(exclude_unset=True)

    if changes.get("name"):
        carrier.name = changes["name"].strip()
    if changes.get("is_active") is not None:
        carrier.is_active = changes["is_active"]
    if changes.get("insurance_kinds") is not None:
        carrier.insurance_kinds = [kind.value for kind in changes["insurance_kinds"]]
    if "life_fyc" in changes:
        carrier.life_fyc = changes["life_fyc"]
    if "health_fyc" in changes:
        carrier.health_fyc = changes["health_fyc"]

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_CARRIER,
        target_type="carrier",
        target_id=carrier_id,
        action_metadata={
            key: (_rate(value) if key.endswith("_fyc") else value)
            for key, value in data.model_dump(exclude_unset=True, mode="json").items()
        },
        ip_address=get_client_ip(request),
    )

    await db.commit()
    await db.refresh(carrier)

    return CarrierResponse.model_validate(carrier)
