"""Pydantic schemas for request/response validation."""

from src.schemas.auth import LoginRequest, LoginResponse
from src.schemas.carrier import CarrierCreate, CarrierResponse, CarrierUpdate
from src.schemas.deal import (
    DealCreate,
    DealListResponse,
    DealResponse,
    DealUpdateRequest,
    PayoutResponse,
    SplitResponse,
)
from src.schemas.hierarchy import (
    DirectRecruitResponse,
    DirectRecruitsResponse,
    HierarchyNode,
    HierarchyNodeStats,
    UplineChainResponse,
    UplineMemberResponse,
)
from src.schemas.payout import (
    DailyAmount,
    PayoutDealLine,
    PayoutTotals,
    TeamAgentBreakdown,
    TeamTotals,
    TeamWeeklyPayoutResponse,
    WeeklyPayoutResponse,
)
from src.schemas.user import PersonCreate, PersonListResponse, PersonResponse, PersonUpdate

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    # Person
    "PersonCreate",
    "PersonUpdate",
    "PersonResponse",
    "PersonListResponse",
    # Carrier
    "CarrierCreate",
    "CarrierUpdate",
    "CarrierResponse",
    # Deal
    "DealCreate",
    "DealUpdateRequest",
    "DealResponse",
    "DealListResponse",
    "SplitResponse",
    "PayoutResponse",
    # Hierarchy
    "UplineMemberResponse",
    "UplineChainResponse",
    "HierarchyNode",
    "HierarchyNodeStats",
    "DirectRecruitResponse",
    "DirectRecruitsResponse",
    # Payouts
    "DailyAmount",
    "PayoutTotals",
    "PayoutDealLine",
    "WeeklyPayoutResponse",
    "TeamAgentBreakdown",
    "TeamTotals",
    "TeamWeeklyPayoutResponse",
]
