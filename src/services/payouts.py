"""
Weekly payout aggregation.

summarize_week / summarize_team_week are pure: they take already-loaded
payout records and never touch the database. weekly_payout and
team_weekly_payout load the records for one Monday-Sunday week and
delegate to them.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.models import Deal, Payout, PayoutKind, User
from src.schemas.payout import (
    DailyAmount,
    PayoutDealLine,
    PayoutTotals,
    TeamAgentBreakdown,
    TeamTotals,
    TeamWeeklyPayoutResponse,
    WeeklyPayoutResponse,
)
from src.services.hierarchy import (
    HierarchyMember,
    PersonDirectory,
    direct_report_for,
    direct_reports,
    downline_ids,
)
from src.services.scheduling import (
    day_name,
    format_week_range,
    is_current_week,
    next_week,
    previous_week,
    week_bounds,
    week_dates,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayoutRecord:
    """A persisted payout joined with its deal and seller."""

    deal_id: int
    client_name: str
    premium: Decimal
    effective_date: Optional[date]
    deposit_date: date
    amount: Decimal
    kind: PayoutKind
    seller_id: int
    seller_name: str
    seller_role: str


@dataclass(frozen=True)
class TeamDealRecord:
    """A downline deal depositing in the week, with the leader's override on it."""

    deal_id: int
    seller_id: int
    premium: Decimal
    seller_commission: Decimal
    leader_override: Decimal


def summarize_week(
    beneficiary: HierarchyMember,
    week_of: date,
    records: Iterable[PayoutRecord],
    today: Optional[date] = None,
) -> WeeklyPayoutResponse:
    """
    Weekly payout summary for one beneficiary.

    Args:
        beneficiary: Person receiving the payouts
        week_of: Any date of the wanted week
        records: Payout records; those outside the week are ignored
        today: Reference date for is_current_week

    Returns:
        Totals split into personal commission and override earnings,
        per-deal lines sorted by deposit date and a seven-day breakdown
    """
    bounds = week_bounds(week_of)
    in_week = [r for r in records if r.deposit_date in bounds]

    breakdown: Dict[str, DailyAmount] = {
        day_name(day): DailyAmount(day=day, amount=Decimal("0"))
        for day in week_dates(bounds.start)
    }

    totals = PayoutTotals()
    lines: List[PayoutDealLine] = []

    for record in in_week:
        amount = Decimal(str(record.amount))
        is_personal = record.kind == PayoutKind.BASE_COMMISSION

        if is_personal:
            totals.personal_commission += amount
            totals.personal_deals += 1
        else:
            totals.override_earnings += amount
            totals.override_deals += 1

        breakdown[day_name(record.deposit_date)].amount += amount

        lines.append(
            PayoutDealLine(
                deal_id=record.deal_id,
                client_name=record.client_name,
                effective_date=record.effective_date,
                deposit_date=record.deposit_date,
                premium=record.premium,
                your_earnings=amount,
                type="personal" if is_personal else "override",
                agent="You" if is_personal else record.seller_name,
                agent_role=record.seller_role,
            )
        )

    totals.total = totals.personal_commission + totals.override_earnings
    totals.total_deals = len(lines)
    lines.sort(key=lambda line: (line.deposit_date, line.deal_id))

    return WeeklyPayoutResponse(
        user_id=beneficiary.id,
        user_name=beneficiary.name,
        user_level=beneficiary.role_label,
        week_start=bounds.start,
        week_end=bounds.end,
        week_display=format_week_range(bounds.start, bounds.end),
        is_current_week=is_current_week(bounds.start, today),
        previous_week=previous_week(bounds.start),
        next_week=next_week(bounds.start),
        payouts=totals,
        deals=lines,
        daily_breakdown=breakdown,
    )


def summarize_team_week(
    leader: HierarchyMember,
    week_of: date,
    deals: Iterable[TeamDealRecord],
    directory: PersonDirectory,
) -> TeamWeeklyPayoutResponse:
    """
    Attribute a week of downline production to the leader's direct reports.

    Each deal is credited to the direct report whose subtree contains the
    seller, found by walking from the seller toward the leader.
    """
    bounds = week_bounds(week_of)
    entries: Dict[int, TeamAgentBreakdown] = {}

    for report in direct_reports(leader.id, directory):
        entries[report.id] = TeamAgentBreakdown(
            agent_id=report.id,
            agent_name=report.name,
            level=report.role_label,
        )

    totals = TeamTotals()
    for deal in deals:
        report_id = direct_report_for(deal.seller_id, leader.id, directory)
        if report_id is None:
            logger.debug(f"Deal {deal.deal_id} seller {deal.seller_id} is not below leader {leader.id}")
            continue

        totals.total_production += deal.premium
        totals.total_deals += 1
        totals.total_commissions += deal.seller_commission
        totals.your_override += deal.leader_override

        entry = entries.get(report_id)
        if entry is None:
            # Inactive direct report whose subtree still produced
            report = directory.get(report_id)
            entry = TeamAgentBreakdown(
                agent_id=report.id,
                agent_name=report.name,
                level=report.role_label,
            )
            entries[report_id] = entry

        entry.deals += 1
        entry.production += deal.premium
        entry.their_commission += deal.seller_commission
        entry.your_override += deal.leader_override

    agent_breakdown = sorted(
        (e for e in entries.values() if e.deals > 0 or e.production > 0),
        key=lambda e: e.production,
        reverse=True,
    )

    return TeamWeeklyPayoutResponse(
        user_id=leader.id,
        user_name=leader.name,
        user_level=leader.role_label,
        week_start=bounds.start,
        week_end=bounds.end,
        week_display=format_week_range(bounds.start, bounds.end),
        team_totals=totals,
        agent_breakdown=agent_breakdown,
    )


async def load_payout_records(
    db: AsyncSession,
    beneficiary_id: int,
    start: date,
    end: date,
) -> List[PayoutRecord]:
    """Payouts of a beneficiary depositing between start and end (inclusive)."""
    result = await db.execute(
        select(Payout, Deal, User)
        .join(Deal, Payout.deal_id == Deal.id)
        .join(User, Deal.seller_id == User.id)
        .where(
            and_(
                Payout.beneficiary_id == beneficiary_id,
                Payout.deposit_date >= start,
                Payout.deposit_date <= end,
            )
        )
        .order_by(Payout.deposit_date, Payout.id)
    )

    return [
        PayoutRecord(
            deal_id=deal.id,
            client_name=deal.client_name,
            premium=deal.annual_premium,
            effective_date=deal.effective_date,
            deposit_date=payout.deposit_date,
            amount=payout.amount,
            kind=payout.kind,
            seller_id=seller.id,
            seller_name=seller.full_name,
            seller_role=seller.role_label,
        )
        for payout, deal, seller in result.all()
    ]


async def weekly_payout(
    db: AsyncSession,
    beneficiary_id: int,
    week_of: date,
    today: Optional[date] = None,
) -> Optional[WeeklyPayoutResponse]:
    """
    Weekly payout summary of a person.

    Returns:
        The summary, or None if the person does not exist
    """
    user = await db.get(User, beneficiary_id)
    if not user:
        return None

    bounds = week_bounds(week_of)
    records = await load_payout_records(db, beneficiary_id, bounds.start, bounds.end)
    return summarize_week(HierarchyMember.from_user(user), bounds.start, records, today)


async def team_weekly_payout(
    db: AsyncSession,
    leader_id: int,
    week_of: date,
) -> Optional[TeamWeeklyPayoutResponse]:
    """
    Team payout view of a leader for one week.

    Returns:
        The summary, or None if the leader does not exist
    """
    directory = await PersonDirectory.load(db)
    leader = directory.get(leader_id)
    if leader is None:
        return None

    bounds = week_bounds(week_of)
    # Inactive people keep earning overrides for the leader on their subtree
    team = downline_ids(leader_id, directory, active_only=False)

    records: List[TeamDealRecord] = []
    if team:
        result = await db.execute(
            select(Deal)
            .where(
                and_(
                    Deal.seller_id.in_(team),
                    Deal.deposit_date >= bounds.start,
                    Deal.deposit_date <= bounds.end,
                )
            )
            .options(selectinload(Deal.payouts))
        )
        for deal in result.scalars().all():
            leader_override = sum(
                (
                    p.amount for p in deal.payouts
                    if p.beneficiary_id == leader_id and p.kind == PayoutKind.OVERRIDE
                ),
                Decimal("0"),
            )
            records.append(
                TeamDealRecord(
                    deal_id=deal.id,
                    seller_id=deal.seller_id,
                    premium=deal.annual_premium,
                    seller_commission=deal.seller_commission,
                    leader_override=leader_override,
                )
            )

    return summarize_team_week(leader, bounds.start, records, directory)
