"""Hierarchy view schemas."""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel


class UplineMemberResponse(BaseModel):
    """One hop of an upline chain."""

    id: int
    name: str
    role: str
    commission_level: int


class UplineChainResponse(BaseModel):
    person_id: int
    chain: List[UplineMemberResponse]
    # False when the chain stops before reaching an AO
    is_complete: bool


class HierarchyNodeStats(BaseModel):
    total_downline: int = 0
    by_level: Dict[str, int] = {}
    personal_production: Decimal = Decimal("0.00")
    personal_deals: int = 0


class HierarchyNode(BaseModel):
    """A person and their recruits, recursively."""

    id: int
    name: str
    role: str
    commission_level: int
    is_active: bool = True
    stats: HierarchyNodeStats
    direct_recruits: List["HierarchyNode"] = []


class DirectRecruitResponse(BaseModel):
    id: int
    name: str
    role: str
    commission_level: int
    total_downline: int
    personal_production: Decimal = Decimal("0.00")
    personal_deals: int = 0


class DirectRecruitsResponse(BaseModel):
    items: List[DirectRecruitResponse]
    total: int
    upline_id: Optional[int] = None


HierarchyNode.model_rebuild()
