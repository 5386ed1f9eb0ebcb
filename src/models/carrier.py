"""
Insurance carrier model with first-year commission (FYC) rates.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class Carrier(BaseModel):
    """
    An insurance carrier the agency writes business with.

    life_fyc / health_fyc are multipliers applied to the annual premium.
    A missing rate falls back to the configured default for that kind.
    """

    __tablename__ = "carriers"

    name: Mapped[str] = mapped_column(
        String(150),
        unique=True,
        index=True,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    insurance_kinds: Mapped[list] = mapped_column(
        JSON,
        default=lambda: ["life"],
        nullable=False,
        comment="Insurance kinds offered: [\"life\", \"health\"]",
    )
    life_fyc: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 4),
        nullable=True,
    )
    health_fyc: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 4),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Carrier(id={self.id}, name='{self.name}')>"
