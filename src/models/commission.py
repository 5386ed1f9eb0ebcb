"""
Commission split and payout models.

SECURITY NOTE:
- Rows are only ever written through src.services.deal_ledger, which
  replaces a deal's splits and payouts as one unit
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import SHARE_AMOUNT, Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.deal import Deal
    from src.models.user import User


class HierarchyRole(str, Enum):
    """Position of a beneficiary relative to the sale."""
    AGENT = "agent"        # The seller's own share
    MANAGER = "manager"    # Intermediate upline override
    OWNER = "owner"        # Terminal (AO) override


class PayoutKind(str, Enum):
    BASE_COMMISSION = "base_commission"
    OVERRIDE = "override"


class CommissionSplit(Base, TimestampMixin):
    """One beneficiary's share of a deal's commission pool."""

    __tablename__ = "commission_splits"

    id: Mapped[int] = mapped_column(primary_key=True)
    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    beneficiary_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    beneficiary_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Name snapshot at recording time",
    )
    amount: Mapped[Decimal] = mapped_column(
        SHARE_AMOUNT,
        nullable=False,
    )
    level_delta: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Ladder percentage points this share represents",
    )
    is_override: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )
    role_in_hierarchy: Mapped[HierarchyRole] = mapped_column(
        SQLAlchemyEnum(
            HierarchyRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )

    # Relationships
    deal: Mapped["Deal"] = relationship(
        "Deal",
        back_populates="splits",
    )
    beneficiary: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<CommissionSplit(id={self.id}, deal_id={self.deal_id}, "
            f"beneficiary_id={self.beneficiary_id}, amount={self.amount})>"
        )


class Payout(Base, TimestampMixin):
    """
    A scheduled deposit of one commission split.

    deposit_date is derived from the deal's effective date; week_start and
    week_end are the Monday-Sunday bucket containing it.
    """

    __tablename__ = "payouts"

    id: Mapped[int] = mapped_column(primary_key=True)
    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    split_id: Mapped[int] = mapped_column(
        ForeignKey("commission_splits.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    beneficiary_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        SHARE_AMOUNT,
        nullable=False,
    )
    kind: Mapped[PayoutKind] = mapped_column(
        SQLAlchemyEnum(
            PayoutKind,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    deposit_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    week_start: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    week_end: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    # Relationships
    deal: Mapped["Deal"] = relationship(
        "Deal",
        back_populates="payouts",
    )
    split: Mapped["CommissionSplit"] = relationship("CommissionSplit")
    beneficiary: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<Payout(id={self.id}, beneficiary_id={self.beneficiary_id}, "
            f"deposit_date={self.deposit_date}, amount={self.amount})>"
        )
