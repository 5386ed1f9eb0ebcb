"""
Person model: agents, managers and agency owners of the recruiting hierarchy.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.audit import AuditLog
    from src.models.deal import Deal


class LadderTier(str, Enum):
    """
    Commission ladder tiers, lowest first.

    Each tier carries its commission percentage. The role label shown in
    the UI is derived from the tier, never stored separately.
    """
    PRODIGY = "prodigy"
    BA = "ba"
    SA = "sa"
    GA = "ga"
    MGA = "mga"
    PARTNER = "partner"
    AO = "ao"

    @property
    def level(self) -> int:
        return TIER_LEVELS[self]

    @property
    def label(self) -> str:
        return TIER_LABELS[self]

    @property
    def is_owner(self) -> bool:
        return self is LadderTier.AO

    @property
    def is_manager(self) -> bool:
        """Any tier above the entry level can earn overrides."""
        return self.level > TIER_LEVELS[LadderTier.PRODIGY]

    @classmethod
    def from_level(cls, level: int) -> "LadderTier":
        for tier, tier_level in TIER_LEVELS.items():
            if tier_level == level:
                return tier
        raise ValueError(f"No ladder tier has level {level}")


TIER_LEVELS = {
    LadderTier.PRODIGY: 70,
    LadderTier.BA: 80,
    LadderTier.SA: 90,
    LadderTier.GA: 100,
    LadderTier.MGA: 110,
    LadderTier.PARTNER: 120,
    LadderTier.AO: 130,
}

TIER_LABELS = {
    LadderTier.PRODIGY: "Prodigy",
    LadderTier.BA: "BA",
    LadderTier.SA: "SA",
    LadderTier.GA: "GA",
    LadderTier.MGA: "MGA",
    LadderTier.PARTNER: "Partner",
    LadderTier.AO: "AO",
}

# The owner's level: the whole commission pool is scaled to it
TOP_LEVEL = TIER_LEVELS[LadderTier.AO]


def label_for_level(level: int) -> str:
    """Display label for a raw commission level (levels off the ladder count as Prodigy)."""
    try:
        return LadderTier.from_level(level).label
    except ValueError:
        return TIER_LABELS[LadderTier.PRODIGY]


class User(Base, TimestampMixin):
    """
    A person in the agency.

    - upline_id: next link of the override chain
    - manager_id: organisational grouping only, never used for commissions
    - is_admin: back-office administrator, independent of the ladder tier
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
        server_default="",
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    tier: Mapped[LadderTier] = mapped_column(
        SQLAlchemyEnum(
            LadderTier,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=LadderTier.PRODIGY,
        nullable=False,
        index=True,
    )
    upline_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Direct superior in the override chain",
    )
    manager_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Organisational manager (team grouping only)",
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_active_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    upline: Mapped[Optional["User"]] = relationship(
        "User",
        remote_side="User.id",
        foreign_keys=[upline_id],
    )
    deals: Mapped[List["Deal"]] = relationship(
        "Deal",
        back_populates="seller",
        foreign_keys="Deal.seller_id",
    )
    audit_logs: Mapped[List["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def commission_level(self) -> int:
        return self.tier.level

    @property
    def role_label(self) -> str:
        return self.tier.label

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', tier={self.tier})>"
