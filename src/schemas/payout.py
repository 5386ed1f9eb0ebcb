"""Weekly payout schemas."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class DailyAmount(BaseModel):
    day: date
    amount: Decimal = Decimal("0")


class PayoutTotals(BaseModel):
    personal_commission: Decimal = Decimal("0")
    override_earnings: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    personal_deals: int = 0
    override_deals: int = 0
    total_deals: int = 0


class PayoutDealLine(BaseModel):
    """One payout of the week, as seen by its beneficiary."""

    deal_id: int
    client_name: str
    effective_date: Optional[date]
    deposit_date: date
    premium: Decimal
    your_earnings: Decimal
    type: Literal["personal", "override"]
    agent: str = Field(..., description="'You' for personal sales, otherwise the seller's name")
    agent_role: str


class WeeklyPayoutResponse(BaseModel):
    user_id: int
    user_name: str
    user_level: str
    week_start: date
    week_end: date
    week_display: str
    is_current_week: bool = False
    previous_week: date
    next_week: date
    payouts: PayoutTotals
    deals: List[PayoutDealLine]
    # Always seven entries, Monday through Sunday
    daily_breakdown: Dict[str, DailyAmount]


class TeamAgentBreakdown(BaseModel):
    """Production of one direct report's subtree during the week."""

    agent_id: int
    agent_name: str
    level: str
    deals: int = 0
    production: Decimal = Decimal("0")
    their_commission: Decimal = Decimal("0")
    your_override: Decimal = Decimal("0")


class TeamTotals(BaseModel):
    total_production: Decimal = Decimal("0")
    total_deals: int = 0
    total_commissions: Decimal = Decimal("0")
    your_override: Decimal = Decimal("0")


class TeamWeeklyPayoutResponse(BaseModel):
    user_id: int
    user_name: str
    user_level: str
    week_start: date
    week_end: date
    week_display: str
    team_totals: TeamTotals
    agent_breakdown: List[TeamAgentBreakdown]
