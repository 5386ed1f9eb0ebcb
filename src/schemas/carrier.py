"""Carrier schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.deal import InsuranceKind


class CarrierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    insurance_kinds: List[InsuranceKind] = [InsuranceKind.LIFE]
    life_fyc: Optional[Decimal] = Field(None, ge=0, le=10)
    health_fyc: Optional[Decimal] = Field(None, ge=0, le=10)


class CarrierUpdate(BaseModel):
    """Rate changes apply to deals recorded or recomputed afterwards."""

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    is_active: Optional[bool] = None
    insurance_kinds: Optional[List[InsuranceKind]] = None
    life_fyc: Optional[Decimal] = Field(None, ge=0, le=10)
    health_fyc: Optional[Decimal] = Field(None, ge=0, le=10)


class CarrierResponse(BaseModel):
    id: int
    name: str
    is_active: bool
    insurance_kinds: List[str]
    life_fyc: Optional[Decimal]
    health_fyc: Optional[Decimal]
    created_at: datetime

    model_config = {"from_attributes": True}
