"""
Multi-level commission split calculation.

Rules:
- Base commission = annual premium x carrier FYC rate
- The seller keeps base x seller level / 100
- Each upline member earns base x (member level - previous level) / 100,
  where previous level is the last level that actually earned
- Members at or below the previous level are skipped and do not advance it
- Walking stops after a member at the top of the ladder (AO, 130)
- The nominal pool is base x 130 / 100; an incomplete chain distributes less
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from src.models.commission import HierarchyRole
from src.models.deal import InsuranceKind
from src.models.user import TOP_LEVEL
from src.services.hierarchy import HierarchyMember

logger = logging.getLogger(__name__)

# Fallback FYC rates when a carrier or its rate is unknown
DEFAULT_LIFE_FYC = Decimal("1.0")
DEFAULT_HEALTH_FYC = Decimal("0.5")

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class SplitShare:
    """One beneficiary's share of the pool."""

    beneficiary_id: int
    beneficiary_name: str
    amount: Decimal
    level_delta: int
    is_override: bool
    role: HierarchyRole


@dataclass
class CommissionBreakdown:
    base_commission: Decimal
    nominal_pool: Decimal
    shares: List[SplitShare] = field(default_factory=list)

    @property
    def seller_commission(self) -> Decimal:
        return sum((s.amount for s in self.shares if not s.is_override), Decimal("0"))

    @property
    def manager_override(self) -> Decimal:
        return sum(
            (s.amount for s in self.shares if s.role == HierarchyRole.MANAGER),
            Decimal("0"),
        )

    @property
    def owner_override(self) -> Decimal:
        return sum(
            (s.amount for s in self.shares if s.role == HierarchyRole.OWNER),
            Decimal("0"),
        )

    @property
    def distributed_total(self) -> Decimal:
        return sum((s.amount for s in self.shares), Decimal("0"))

    @property
    def is_complete(self) -> bool:
        """True when the whole nominal pool was handed out."""
        return self.distributed_total == self.nominal_pool


def fyc_rate_for(
    insurance_kind: InsuranceKind,
    carrier=None,
    default_life: Decimal = DEFAULT_LIFE_FYC,
    default_health: Decimal = DEFAULT_HEALTH_FYC,
) -> Decimal:
    """
    FYC rate for a deal.

    Args:
        insurance_kind: LIFE or HEALTH
        carrier: Carrier row (or anything with life_fyc/health_fyc), may be None
        default_life: Rate used when no LIFE rate is known
        default_health: Rate used when no HEALTH rate is known

    Returns:
        Rate as a Decimal multiplier (e.g. 1.0 = 100% of premium)
    """
    if insurance_kind == InsuranceKind.LIFE:
        rate = getattr(carrier, "life_fyc", None)
        default = default_life
    else:
        rate = getattr(carrier, "health_fyc", None)
        default = default_health

    if rate is None:
        logger.debug(
            f"No {insurance_kind.value} FYC rate for carrier "
            f"{getattr(carrier, 'name', None)!r}, using default {default}"
        )
        return Decimal(str(default))

    return Decimal(str(rate))


def compute_base_commission(annual_premium: Decimal, fyc_rate: Decimal) -> Decimal:
    """Annual premium x FYC rate, rounded to cents."""
    return (Decimal(str(annual_premium)) * Decimal(str(fyc_rate))).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def nominal_pool(base_commission: Decimal, top_level: int = TOP_LEVEL) -> Decimal:
    return base_commission * Decimal(top_level) / HUNDRED


def compute_splits(
    base_commission: Decimal,
    seller: HierarchyMember,
    upline_chain: Sequence[HierarchyMember],
    top_level: int = TOP_LEVEL,
) -> CommissionBreakdown:
    """
    Partition a deal's commission pool across the seller and their upline.

    Args:
        base_commission: Base commission of the deal
        seller: The selling agent
        upline_chain: Seller's superiors, nearest first (see resolve_upline)
        top_level: Ladder maximum; reaching it ends override accumulation

    Returns:
        CommissionBreakdown with the seller share first, then overrides
        in chain order
    """
    base = Decimal(str(base_commission))
    breakdown = CommissionBreakdown(
        base_commission=base,
        nominal_pool=nominal_pool(base, top_level),
    )

    breakdown.shares.append(
        SplitShare(
            beneficiary_id=seller.id,
            beneficiary_name=seller.name,
            amount=base * Decimal(seller.level) / HUNDRED,
            level_delta=seller.level,
            is_override=False,
            role=HierarchyRole.AGENT,
        )
    )

    if seller.level >= top_level:
        return breakdown

    previous_level = seller.level
    for member in upline_chain:
        delta = member.level - previous_level

        if delta > 0:
            breakdown.shares.append(
                SplitShare(
                    beneficiary_id=member.id,
                    beneficiary_name=member.name,
                    amount=base * Decimal(delta) / HUNDRED,
                    level_delta=delta,
                    is_override=True,
                    role=HierarchyRole.OWNER if member.is_owner else HierarchyRole.MANAGER,
                )
            )
            previous_level = member.level
        else:
            logger.debug(
                f"Skipping upline member {member.id} (level {member.level}): "
                f"no step up from level {previous_level}"
            )

        if member.level >= top_level:
            break

    return breakdown


def direct_manager(upline_chain: Sequence[HierarchyMember]) -> Optional[HierarchyMember]:
    """First hop of the chain, snapshotted on the deal as its manager."""
    return upline_chain[0] if upline_chain else None


def chain_owner(upline_chain: Sequence[HierarchyMember]) -> Optional[HierarchyMember]:
    """First AO in the chain, snapshotted on the deal as its owner."""
    for member in upline_chain:
        if member.is_owner:
            return member
    return None
