"""Business logic services."""

from src.services.commission import CommissionBreakdown, SplitShare, compute_splits
from src.services.deal_ledger import delete_deal, record_deal, update_deal
from src.services.errors import (
    CommissionError,
    ConcurrentRecomputeError,
    DealNotFoundError,
    InvalidDealInput,
)
from src.services.hierarchy import HierarchyMember, PersonDirectory, resolve_upline
from src.services.payouts import team_weekly_payout, weekly_payout

__all__ = [
    "CommissionBreakdown",
    "SplitShare",
    "compute_splits",
    "record_deal",
    "update_deal",
    "delete_deal",
    "CommissionError",
    "ConcurrentRecomputeError",
    "DealNotFoundError",
    "InvalidDealInput",
    "HierarchyMember",
    "PersonDirectory",
    "resolve_upline",
    "weekly_payout",
    "team_weekly_payout",
]
