"""
Deal schemas.

Commission figures are read-only: they are computed by the deal ledger
from the premium, carrier and insurance kind and never accepted as input.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.commission import HierarchyRole, PayoutKind
from src.models.deal import DealStatus, InsuranceKind, PolicyType


class DealCreate(BaseModel):
    """Request to record a sale."""

    client_name: str = Field(..., min_length=1, max_length=200)
    client_age: Optional[int] = Field(None, ge=0, le=130)
    client_state: Optional[str] = Field(None, max_length=50)
    client_phone: Optional[str] = Field(None, max_length=50)
    policy_number: Optional[str] = Field(None, max_length=100)
    policy_type: PolicyType = PolicyType.TERM
    lead_source: Optional[str] = Field(None, max_length=100)
    face_amount: Optional[Decimal] = Field(None, ge=0)
    draft_date: Optional[date] = None
    application_date: Optional[date] = Field(
        None,
        description="Defaults to today",
    )
    notes: Optional[str] = Field(None, max_length=2000)
    status: DealStatus = DealStatus.SUBMITTED

    carrier_name: str = Field(..., min_length=1, max_length=150)
    insurance_kind: InsuranceKind = InsuranceKind.LIFE
    annual_premium: Decimal = Field(..., ge=0)
    effective_date: Optional[date] = None

    # Record on behalf of another agent (admins and AOs only)
    seller_id: Optional[int] = None


class DealUpdateRequest(BaseModel):
    """
    Partial deal update.

    Changing annual_premium, carrier_name or insurance_kind recomputes the
    commission splits; changing effective_date reschedules the payouts.
    Send the version you read to detect concurrent edits.
    """

    client_name: Optional[str] = Field(None, min_length=1, max_length=200)
    client_age: Optional[int] = Field(None, ge=0, le=130)
    client_state: Optional[str] = Field(None, max_length=50)
    client_phone: Optional[str] = Field(None, max_length=50)
    policy_number: Optional[str] = Field(None, max_length=100)
    policy_type: Optional[PolicyType] = None
    lead_source: Optional[str] = Field(None, max_length=100)
    face_amount: Optional[Decimal] = Field(None, ge=0)
    draft_date: Optional[date] = None
    application_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)
    status: Optional[DealStatus] = None

    carrier_name: Optional[str] = Field(None, min_length=1, max_length=150)
    insurance_kind: Optional[InsuranceKind] = None
    annual_premium: Optional[Decimal] = Field(None, ge=0)
    effective_date: Optional[date] = None

    version: Optional[int] = None


class SplitResponse(BaseModel):
    id: int
    beneficiary_id: int
    beneficiary_name: str
    amount: Decimal
    level_delta: int
    is_override: bool
    role_in_hierarchy: HierarchyRole

    model_config = {"from_attributes": True}


class PayoutResponse(BaseModel):
    id: int
    split_id: int
    beneficiary_id: int
    amount: Decimal
    kind: PayoutKind
    deposit_date: date
    week_start: date
    week_end: date

    model_config = {"from_attributes": True}


class DealResponse(BaseModel):
    """A deal with its frozen commission figures."""

    id: int
    seller_id: int
    seller_name: Optional[str] = None
    manager_id: Optional[int]
    owner_id: Optional[int]

    client_name: str
    client_age: Optional[int] = None
    client_state: Optional[str] = None
    client_phone: Optional[str] = None
    policy_number: Optional[str] = None
    policy_type: PolicyType
    lead_source: Optional[str] = None
    face_amount: Optional[Decimal] = None
    draft_date: Optional[date] = None
    application_date: date
    notes: Optional[str] = None
    status: DealStatus

    carrier_name: str
    insurance_kind: InsuranceKind
    annual_premium: Decimal
    effective_date: Optional[date]
    deposit_date: Optional[date]

    fyc_rate: Decimal
    base_commission: Decimal
    seller_commission: Decimal
    manager_override: Decimal
    owner_override: Decimal
    total_commission_pool: Decimal

    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    splits: List[SplitResponse] = []
    payouts: List[PayoutResponse] = []

    model_config = {"from_attributes": True}


class DealListResponse(BaseModel):
    """Paginated deal list."""

    items: List[DealResponse]
    total: int
    page: int
    per_page: int
    pages: int
