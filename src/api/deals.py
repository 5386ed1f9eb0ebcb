"""Deal API endpoints: record, list, edit (recompute) and delete sales."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.auth.dependencies import get_current_user
from src.db import get_db
from src.models import AuditAction, Deal, DealStatus, User
from src.schemas.deal import DealCreate, DealListResponse, DealResponse, DealUpdateRequest
from src.services.deal_ledger import (
    COMMISSION_FIELDS,
    can_modify_deal,
    delete_deal,
    get_deal,
    record_deal,
    update_deal,
    visible_seller_ids,
)
from src.services.errors import (
    CommissionError,
    ConcurrentRecomputeError,
    DealNotFoundError,
    InvalidDealInput,
)
from src.services.hierarchy import PersonDirectory
from src.utils.audit import commission_snapshot, get_client_ip, log_action

router = APIRouter(prefix="/deals", tags=["Deals"])


def raise_for_service_error(error: CommissionError) -> None:
    """Translate a ledger exception into the matching HTTP error."""
    if isinstance(error, DealNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ConcurrentRecomputeError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, InvalidDealInput):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    raise HTTPException(
        status_code=code,
        detail={"message": error.message, "code": error.code, **error.details},
    ) from error


def deal_response(deal: Deal) -> DealResponse:
    response = DealResponse.model_validate(deal)
    response.seller_name = deal.seller.full_name if deal.seller else None
    return response


def _sees_everything(user: User) -> bool:
    return user.is_admin or user.tier.is_owner


async def _load_for_user(db: AsyncSession, deal_id: int, user: User):
    """Load a deal the user is allowed to touch, or raise 404 / 403."""
    deal = await get_deal(db, deal_id)
    if not deal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deal not found",
        )

    directory = await PersonDirectory.load(db)
    if not can_modify_deal(user, deal, directory):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )

    return deal


@router.get("", response_model=DealListResponse)
async def list_deals(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    scope: str = Query("personal", pattern="^(personal|team)$"),
    agent_id: Optional[int] = Query(None),
    status_filter: Optional[DealStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """
    List deals.

    - scope=personal: the current user's own sales
    - scope=team: own sales plus the whole active downline
    - agent_id: narrow to one seller within the visible set
    """
    query = select(Deal).options(
        selectinload(Deal.seller),
        selectinload(Deal.splits),
        selectinload(Deal.payouts),
    )

    unrestricted = scope == "team" and _sees_everything(current_user)
    if not unrestricted:
        directory = await PersonDirectory.load(db)
        seller_ids = visible_seller_ids(current_user, directory, scope)

        if agent_id is not None and agent_id not in seller_ids and not _sees_everything(current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Agent is not in your team",
            )
        if agent_id is None:
            query = query.where(Deal.seller_id.in_(seller_ids))

    if agent_id is not None:
        query = query.where(Deal.seller_id == agent_id)

    if status_filter:
        query = query.where(Deal.status == status_filter)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(Deal.application_date.desc(), Deal.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    deals = result.scalars().all()

    return DealListResponse(
        items=[deal_response(deal) for deal in deals],
        total=total or 0,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.post("", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    request: Request,
    data: DealCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Record a sale; splits and payouts are computed immediately."""
    seller_id = current_user.id
    if data.seller_id is not None and data.seller_id != current_user.id:
        if not _sees_everything(current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only owners can record deals for other agents",
            )
        seller_id = data.seller_id

    try:
        deal = await record_deal(db, seller_id, data)
    except CommissionError as e:
        raise_for_service_error(e)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_DEAL,
        target_type="deal",
        target_id=deal.id,
        action_metadata=commission_snapshot(deal),
        ip_address=get_client_ip(request),
    )

    await db.commit()
    return deal_response(deal)


@router.get("/{deal_id}", response_model=DealResponse)
async def get_deal_detail(
    deal_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Deal with its splits and payouts."""
    deal = await _load_for_user(db, deal_id, current_user)
    return deal_response(deal)


@router.patch("/{deal_id}", response_model=DealResponse)
async def patch_deal(
    request: Request,
    deal_id: int,
    data: DealUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Edit a deal.

    Premium, carrier or insurance kind edits recompute every split and
    payout; an effective date edit reschedules the payouts. A stale
    version returns 409.
    """
    await _load_for_user(db, deal_id, current_user)

    changes = data.model_dump(exclude_unset=True, exclude={"version"})
    recomputed = any(field in changes for field in COMMISSION_FIELDS)

    try:
        deal = await update_deal(db, deal_id, changes, expected_version=data.version)
    except CommissionError as e:
        raise_for_service_error(e)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.RECOMPUTE_COMMISSIONS if recomputed else AuditAction.UPDATE_DEAL,
        target_type="deal",
        target_id=deal_id,
        action_metadata={
            "fields": sorted(changes),
            **commission_snapshot(deal),
        },
        ip_address=get_client_ip(request),
    )

    await db.commit()
    return deal_response(deal)


@router.delete("/{deal_id}")
async def remove_deal(
    request: Request,
    deal_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a deal together with its splits and payouts."""
    deal = await _load_for_user(db, deal_id, current_user)
    snapshot = commission_snapshot(deal)

    try:
        await delete_deal(db, deal_id)
    except CommissionError as e:
        raise_for_service_error(e)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_DEAL,
        target_type="deal",
        target_id=deal_id,
        action_metadata={"client_name": deal.client_name, **snapshot},
        ip_address=get_client_ip(request),
    )

    await db.commit()
    return {"success": True, "message": f"Deal {deal_id} deleted"}
