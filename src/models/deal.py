"""
Deal model: a recorded insurance sale and its frozen commission figures.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import MONEY, SHARE_AMOUNT, Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.commission import CommissionSplit, Payout
    from src.models.user import User


class InsuranceKind(str, Enum):
    """Selects which carrier FYC rate applies."""
    LIFE = "life"
    HEALTH = "health"


class PolicyType(str, Enum):
    TERM = "term"
    WHOLE_LIFE = "whole_life"
    UNIVERSAL_LIFE = "universal_life"
    IUL = "iul"
    VUL = "vul"
    FINAL_EXPENSE = "final_expense"
    ANNUITY = "annuity"
    DISABILITY = "disability"
    LTC = "ltc"
    CRITICAL_ILLNESS = "critical_illness"
    OTHER = "other"


class DealStatus(str, Enum):
    """Underwriting status of the policy."""
    SUBMITTED = "submitted"
    PENDING = "pending"
    APPROVED = "approved"
    ISSUED = "issued"
    IN_FORCE = "in_force"
    LAPSED = "lapsed"
    CANCELLED = "cancelled"


class Deal(Base, TimestampMixin):
    """
    A sale recorded by an agent.

    Commission fields are derived when the deal is recorded and frozen.
    They change only when the premium, carrier or insurance kind is edited,
    which replaces every CommissionSplit and Payout row of the deal.

    manager_id / owner_id are snapshots of the first upline hop and the
    first AO in the chain at recording time.
    """

    __tablename__ = "deals"

    id: Mapped[int] = mapped_column(primary_key=True)

    # People
    seller_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    manager_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    owner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    # Client and policy
    client_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    client_age: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    client_state: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    client_phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    policy_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    policy_type: Mapped[PolicyType] = mapped_column(
        SQLAlchemyEnum(
            PolicyType,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PolicyType.TERM,
        nullable=False,
    )
    lead_source: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    face_amount: Mapped[Optional[Decimal]] = mapped_column(
        MONEY,
        nullable=True,
    )
    draft_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    application_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[DealStatus] = mapped_column(
        SQLAlchemyEnum(
            DealStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=DealStatus.SUBMITTED,
        nullable=False,
        index=True,
    )

    # Commission inputs
    carrier_name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    insurance_kind: Mapped[InsuranceKind] = mapped_column(
        SQLAlchemyEnum(
            InsuranceKind,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    annual_premium: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
    )
    effective_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Policy start, unknown until underwritten",
    )

    # Derived commission figures (frozen at recording time)
    fyc_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
    )
    base_commission: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
    )
    seller_commission: Mapped[Decimal] = mapped_column(
        SHARE_AMOUNT,
        nullable=False,
    )
    manager_override: Mapped[Decimal] = mapped_column(
        SHARE_AMOUNT,
        nullable=False,
        default=Decimal("0"),
    )
    owner_override: Mapped[Decimal] = mapped_column(
        SHARE_AMOUNT,
        nullable=False,
        default=Decimal("0"),
    )
    total_commission_pool: Mapped[Decimal] = mapped_column(
        SHARE_AMOUNT,
        nullable=False,
        comment="Nominal pool: base commission scaled to the top ladder level",
    )
    deposit_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        index=True,
    )

    # Optimistic lock, bumped by SQLAlchemy on every UPDATE of this row
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    seller: Mapped["User"] = relationship(
        "User",
        back_populates="deals",
        foreign_keys=[seller_id],
    )
    manager: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[manager_id],
    )
    owner: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[owner_id],
    )
    splits: Mapped[List["CommissionSplit"]] = relationship(
        "CommissionSplit",
        back_populates="deal",
        cascade="all, delete-orphan",
        order_by="CommissionSplit.id",
    )
    payouts: Mapped[List["Payout"]] = relationship(
        "Payout",
        back_populates="deal",
        cascade="all, delete-orphan",
        order_by="Payout.id",
    )

    @property
    def distributed_total(self) -> Decimal:
        return sum((split.amount for split in self.splits), Decimal("0"))

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, seller_id={self.seller_id}, premium={self.annual_premium})>"
