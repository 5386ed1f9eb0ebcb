"""Person (agent / manager / owner) schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.user import LadderTier


class PersonCreate(BaseModel):
    """Create a person in the hierarchy."""

    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    tier: LadderTier = LadderTier.PRODIGY
    upline_id: Optional[int] = None
    manager_id: Optional[int] = None
    is_admin: bool = False


class PersonUpdate(BaseModel):
    """
    Update a person.

    Changing tier or upline_id affects only deals recorded (or recomputed)
    afterwards; existing splits stay frozen.
    """

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    tier: Optional[LadderTier] = None
    upline_id: Optional[int] = None
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None
    is_admin: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=6, max_length=100)


class PersonResponse(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str]
    tier: LadderTier
    role_label: str
    commission_level: int
    upline_id: Optional[int]
    manager_id: Optional[int]
    is_active: bool
    is_admin: bool
    created_at: datetime
    last_active_at: Optional[datetime]

    model_config = {"from_attributes": True}


class PersonListResponse(BaseModel):
    items: List[PersonResponse]
    total: int
