"""
Deal ledger: records deals and keeps their splits and payouts consistent.

A deal's CommissionSplit and Payout rows are always written as one unit
inside the caller's transaction:

- record_deal inserts the deal with every split and payout in one flush
- update_deal locks the deal row, checks its version and replaces the
  splits (commission edit) or only the payouts (effective date edit)
- delete_deal removes the deal together with its splits and payouts

The request-scoped session (src.db.get_db) commits on success and rolls
back on any exception, so a failed recomputation leaves the prior rows.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from src.config import settings
from src.models import Carrier, CommissionSplit, Deal, InsuranceKind, Payout, PayoutKind, User
from src.schemas.deal import DealCreate
from src.services.commission import (
    CommissionBreakdown,
    chain_owner,
    compute_base_commission,
    compute_splits,
    direct_manager,
    fyc_rate_for,
)
from src.services.errors import ConcurrentRecomputeError, DealNotFoundError, InvalidDealInput
from src.services.hierarchy import PersonDirectory, downline_ids, is_in_downline, resolve_upline
from src.services.scheduling import deposit_date_for, week_bounds

logger = logging.getLogger(__name__)

# Editing any of these replaces the deal's splits and payouts
COMMISSION_FIELDS = ("annual_premium", "carrier_name", "insurance_kind")

# Plain fields copied from an update as-is
DETAIL_FIELDS = (
    "client_name",
    "client_age",
    "client_state",
    "client_phone",
    "policy_number",
    "policy_type",
    "lead_source",
    "face_amount",
    "draft_date",
    "application_date",
    "notes",
    "status",
)

# Detail fields that cannot be cleared
REQUIRED_FIELDS = ("client_name", "policy_type", "application_date", "status")


async def get_deal(db: AsyncSession, deal_id: int) -> Optional[Deal]:
    """Load a deal with its seller, splits and payouts."""
    result = await db.execute(
        select(Deal)
        .options(
            selectinload(Deal.seller),
            selectinload(Deal.splits),
            selectinload(Deal.payouts),
        )
        .where(Deal.id == deal_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_carrier(db: AsyncSession, name: Optional[str]) -> Optional[Carrier]:
    """Carrier by case-insensitive name, None if unknown."""
    if not name:
        return None
    result = await db.execute(
        select(Carrier).where(func.lower(Carrier.name) == name.strip().lower())
    )
    return result.scalar_one_or_none()


async def _breakdown_for(
    db: AsyncSession,
    seller_id: int,
    annual_premium: Decimal,
    carrier_name: str,
    insurance_kind: InsuranceKind,
    directory: PersonDirectory,
):
    seller = directory.get(seller_id)
    if seller is None:
        raise InvalidDealInput(
            f"Seller {seller_id} not found",
            details={"seller_id": seller_id},
        )

    carrier = await find_carrier(db, carrier_name)
    rate = fyc_rate_for(
        insurance_kind,
        carrier,
        default_life=settings.default_life_fyc,
        default_health=settings.default_health_fyc,
    )

    chain = resolve_upline(seller.id, directory, settings.max_upline_depth)
    breakdown = compute_splits(compute_base_commission(annual_premium, rate), seller, chain)

    if not breakdown.is_complete:
        logger.warning(
            f"Seller {seller.id} chain distributes {breakdown.distributed_total} "
            f"of a nominal pool of {breakdown.nominal_pool}"
        )

    return rate, chain, breakdown


def _apply_breakdown(deal: Deal, rate: Decimal, chain, breakdown: CommissionBreakdown) -> None:
    """Store the frozen figures and replace the splits of a deal."""
    manager = direct_manager(chain)
    owner = chain_owner(chain)

    deal.manager_id = manager.id if manager else None
    deal.owner_id = owner.id if owner else None
    deal.fyc_rate = rate
    deal.base_commission = breakdown.base_commission
    deal.seller_commission = breakdown.seller_commission
    deal.manager_override = breakdown.manager_override
    deal.owner_override = breakdown.owner_override
    deal.total_commission_pool = breakdown.nominal_pool

    deal.payouts = []
    deal.splits = [
        CommissionSplit(
            beneficiary_id=share.beneficiary_id,
            beneficiary_name=share.beneficiary_name,
            amount=share.amount,
            level_delta=share.level_delta,
            is_override=share.is_override,
            role_in_hierarchy=share.role,
        )
        for share in breakdown.shares
    ]


def _schedule_payouts(deal: Deal) -> None:
    """Regenerate the payouts of a deal from its splits and effective date."""
    if deal.effective_date is None:
        deal.deposit_date = None
        deal.payouts = []
        return

    deposit = deposit_date_for(deal.effective_date, settings.deposit_offset_business_days)
    bounds = week_bounds(deposit)
    deal.deposit_date = deposit

    deal.payouts = [
        Payout(
            split=split,
            beneficiary_id=split.beneficiary_id,
            amount=split.amount,
            kind=PayoutKind.OVERRIDE if split.is_override else PayoutKind.BASE_COMMISSION,
            deposit_date=deposit,
            week_start=bounds.start,
            week_end=bounds.end,
        )
        for split in deal.splits
    ]


async def record_deal(db: AsyncSession, seller_id: int, data: DealCreate) -> Deal:
    """
    Record a sale and its complete commission distribution.

    Args:
        db: Database session (caller commits)
        seller_id: Selling agent
        data: Validated deal input

    Returns:
        The persisted deal with splits and payouts loaded

    Raises:
        InvalidDealInput: Unknown seller or negative premium; nothing is written
    """
    if data.annual_premium is None or data.annual_premium < 0:
        raise InvalidDealInput(
            "Annual premium must be zero or positive",
            details={"annual_premium": str(data.annual_premium)},
        )

    directory = await PersonDirectory.load(db)
    rate, chain, breakdown = await _breakdown_for(
        db,
        seller_id,
        data.annual_premium,
        data.carrier_name,
        data.insurance_kind,
        directory,
    )

    deal = Deal(
        seller_id=seller_id,
        client_name=data.client_name.strip(),
        client_age=data.client_age,
        client_state=data.client_state,
        client_phone=data.client_phone,
        policy_number=data.policy_number,
        policy_type=data.policy_type,
        lead_source=data.lead_source,
        face_amount=data.face_amount,
        draft_date=data.draft_date,
        application_date=data.application_date or date.today(),
        notes=data.notes,
        status=data.status,
        carrier_name=data.carrier_name.strip(),
        insurance_kind=data.insurance_kind,
        annual_premium=data.annual_premium,
        effective_date=data.effective_date,
    )
    _apply_breakdown(deal, rate, chain, breakdown)
    _schedule_payouts(deal)

    db.add(deal)
    await db.flush()

    logger.info(
        f"Recorded deal {deal.id} for seller {seller_id}: base {breakdown.base_commission}, "
        f"{len(breakdown.shares)} splits, deposit {deal.deposit_date}"
    )
    return await get_deal(db, deal.id)


async def update_deal(
    db: AsyncSession,
    deal_id: int,
    changes: Dict[str, Any],
    expected_version: Optional[int] = None,
) -> Deal:
    """
    Apply a partial update to a deal, recomputing what depends on it.

    The deal row is locked for the rest of the transaction. Premium,
    carrier or insurance kind changes replace every split and payout;
    an effective date change regenerates the payouts from the existing
    splits.

    Args:
        db: Database session (caller commits)
        deal_id: Deal to update
        changes: Field -> new value, only the fields being changed
        expected_version: Version the caller read, None to skip the check

    Raises:
        DealNotFoundError: No such deal
        InvalidDealInput: Negative premium or clearing a required field
        ConcurrentRecomputeError: The deal changed since expected_version
    """
    result = await db.execute(
        select(Deal)
        .options(
            selectinload(Deal.splits),
            selectinload(Deal.payouts),
        )
        .where(Deal.id == deal_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    deal = result.scalar_one_or_none()
    if not deal:
        raise DealNotFoundError(deal_id)

    if expected_version is not None and deal.version != expected_version:
        raise ConcurrentRecomputeError(deal_id, expected_version, deal.version)

    for field in REQUIRED_FIELDS + COMMISSION_FIELDS:
        if field in changes and changes[field] is None:
            raise InvalidDealInput(f"{field} cannot be cleared", details={"field": field})

    premium = changes.get("annual_premium")
    if premium is not None and premium < 0:
        raise InvalidDealInput(
            "Annual premium must be zero or positive",
            details={"annual_premium": str(premium)},
        )

    recompute = any(field in changes for field in COMMISSION_FIELDS)
    reschedule = "effective_date" in changes and changes["effective_date"] != deal.effective_date

    # Queries run while the deal is still clean: an autoflush of a dirty
    # deal would bump its version a second time
    if recompute:
        annual_premium = changes.get("annual_premium", deal.annual_premium)
        carrier_name = changes.get("carrier_name", deal.carrier_name).strip()
        insurance_kind = changes.get("insurance_kind", deal.insurance_kind)

        directory = await PersonDirectory.load(db)
        rate, chain, breakdown = await _breakdown_for(
            db,
            deal.seller_id,
            annual_premium,
            carrier_name,
            insurance_kind,
            directory,
        )

    for field in DETAIL_FIELDS:
        if field in changes:
            setattr(deal, field, changes[field])

    if "effective_date" in changes:
        deal.effective_date = changes["effective_date"]

    if recompute:
        deal.annual_premium = annual_premium
        deal.carrier_name = carrier_name
        deal.insurance_kind = insurance_kind
        _apply_breakdown(deal, rate, chain, breakdown)
        _schedule_payouts(deal)
        logger.info(
            f"Recomputed deal {deal_id}: base {breakdown.base_commission}, "
            f"{len(breakdown.shares)} splits"
        )
    elif reschedule:
        _schedule_payouts(deal)
        logger.info(f"Rescheduled payouts of deal {deal_id} to {deal.deposit_date}")

    # Always touch the row so the version moves even when only children changed
    deal.updated_at = datetime.now(timezone.utc)

    try:
        await db.flush()
    except StaleDataError as e:
        raise ConcurrentRecomputeError(deal_id, expected_version) from e

    return await get_deal(db, deal_id)


async def delete_deal(db: AsyncSession, deal_id: int) -> None:
    """
    Delete a deal with its splits and payouts.

    Raises:
        DealNotFoundError: No such deal
    """
    result = await db.execute(
        select(Deal)
        .options(
            selectinload(Deal.splits),
            selectinload(Deal.payouts),
        )
        .where(Deal.id == deal_id)
        .with_for_update()
    )
    deal = result.scalar_one_or_none()
    if not deal:
        raise DealNotFoundError(deal_id)

    await db.delete(deal)
    await db.flush()
    logger.info(f"Deleted deal {deal_id}")


def can_modify_deal(user: User, deal: Deal, directory: PersonDirectory) -> bool:
    """
    Whether a user may edit (and so recompute) a deal.

    Allowed: admins, AOs, the seller, the deal's manager or owner snapshot,
    and anyone with the seller in their downline.
    """
    if user.is_admin or user.tier.is_owner:
        return True
    if user.id in (deal.seller_id, deal.manager_id, deal.owner_id):
        return True
    return is_in_downline(deal.seller_id, user.id, directory)


def visible_seller_ids(user: User, directory: PersonDirectory, scope: str = "personal") -> List[int]:
    """
    Sellers whose deals a user lists.

    personal: only the user; team: the user and their active downline.
    """
    if scope == "team":
        return [user.id] + downline_ids(user.id, directory)
    return [user.id]
