"""
Database models for Upline.

All models are exported here for convenient imports:
    from src.models import User, Deal, CommissionSplit, Payout, etc.
"""

from src.models.audit import AuditAction, AuditLog
from src.models.base import Base, BaseModel, TimestampMixin
from src.models.carrier import Carrier
from src.models.commission import CommissionSplit, HierarchyRole, Payout, PayoutKind
from src.models.deal import Deal, DealStatus, InsuranceKind, PolicyType
from src.models.user import TOP_LEVEL, LadderTier, User

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampMixin",
    # User
    "User",
    "LadderTier",
    "TOP_LEVEL",
    # Carrier
    "Carrier",
    # Deal
    "Deal",
    "DealStatus",
    "InsuranceKind",
    "PolicyType",
    # Commission
    "CommissionSplit",
    "HierarchyRole",
    "Payout",
    "PayoutKind",
    # Audit
    "AuditLog",
    "AuditAction",
]
