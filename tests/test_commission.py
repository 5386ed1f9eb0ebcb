"""
Tests for multi-level commission splits.

Covers:
- Worked examples (complete chain, skipped lower level)
- Pool invariant and seller share independence
- FYC rate lookup with carrier and default fallbacks
- Base commission rounding
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from conftest import member
from src.models import HierarchyRole, InsuranceKind
from src.services.commission import (
    DEFAULT_HEALTH_FYC,
    DEFAULT_LIFE_FYC,
    chain_owner,
    compute_base_commission,
    compute_splits,
    direct_manager,
    fyc_rate_for,
    nominal_pool,
)


def _carrier(**kwargs):
    defaults = {"name": "Mutual Life", "life_fyc": None, "health_fyc": None}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── Worked examples ───────────────────────────────────────


class TestWorkedExamples:
    def test_prodigy_ga_ao_on_1000(self):
        """70 / 100 / 130 on $1000 -> 700 / 300 / 300."""
        seller = member(1, 70, 2)
        chain = [member(2, 100, 3), member(3, 130)]

        breakdown = compute_splits(Decimal("1000"), seller, chain)

        assert [s.amount for s in breakdown.shares] == [
            Decimal("700"), Decimal("300"), Decimal("300"),
        ]
        assert [s.level_delta for s in breakdown.shares] == [70, 30, 30]
        assert breakdown.nominal_pool == Decimal("1300")
        assert breakdown.distributed_total == Decimal("1300")
        assert breakdown.is_complete

    def test_lower_upline_is_skipped(self):
        """70 / 65 / 130 on $1000 -> 700 / (skip) / 600."""
        seller = member(1, 70, 2)
        chain = [member(2, 65, 3), member(3, 130)]

        breakdown = compute_splits(Decimal("1000"), seller, chain)

        assert [(s.beneficiary_id, s.amount) for s in breakdown.shares] == [
            (1, Decimal("700")),
            (3, Decimal("600")),
        ]
        assert breakdown.distributed_total == Decimal("1300")

    def test_equal_level_skipped_without_advancing(self):
        seller = member(1, 90, 2)
        chain = [member(2, 90, 3), member(3, 110, 4), member(4, 130)]

        breakdown = compute_splits(Decimal("1000"), seller, chain)

        assert [s.beneficiary_id for s in breakdown.shares] == [1, 3, 4]
        assert [s.level_delta for s in breakdown.shares] == [90, 20, 20]


# ── Roles and flags ───────────────────────────────────────


class TestShareRoles:
    def test_roles_and_override_flags(self):
        seller = member(1, 70, 2)
        chain = [member(2, 90, 3), member(3, 110, 4), member(4, 130)]

        shares = compute_splits(Decimal("500"), seller, chain).shares

        assert shares[0].role == HierarchyRole.AGENT
        assert not shares[0].is_override
        assert [s.role for s in shares[1:]] == [
            HierarchyRole.MANAGER, HierarchyRole.MANAGER, HierarchyRole.OWNER,
        ]
        assert all(s.is_override for s in shares[1:])

    def test_breakdown_totals(self):
        seller = member(1, 70, 2)
        chain = [member(2, 100, 3), member(3, 130)]

        breakdown = compute_splits(Decimal("1000"), seller, chain)

        assert breakdown.seller_commission == Decimal("700")
        assert breakdown.manager_override == Decimal("300")
        assert breakdown.owner_override == Decimal("300")

    def test_ao_seller_keeps_whole_pool(self):
        breakdown = compute_splits(Decimal("1000"), member(1, 130), [])
        assert len(breakdown.shares) == 1
        assert breakdown.shares[0].amount == Decimal("1300")
        assert breakdown.is_complete

    def test_members_after_ao_are_ignored(self):
        seller = member(1, 70, 2)
        chain = [member(2, 130, 3), member(3, 140)]

        breakdown = compute_splits(Decimal("100"), seller, chain)
        assert [s.beneficiary_id for s in breakdown.shares] == [1, 2]


# ── Invariants ────────────────────────────────────────────


class TestInvariants:
    CHAINS = [
        [],
        [member(2, 80, 3)],
        [member(2, 100, 3), member(3, 90, 4), member(4, 120, 5)],
        [member(2, 110, 3), member(3, 130)],
        [member(2, 60, 3), member(3, 70, 4), member(4, 130)],
    ]

    @pytest.mark.parametrize("chain", CHAINS)
    def test_sum_never_exceeds_pool(self, chain):
        base = Decimal("777.77")
        breakdown = compute_splits(base, member(1, 70, 2), chain)
        assert breakdown.distributed_total <= nominal_pool(base)

    @pytest.mark.parametrize("chain", CHAINS)
    def test_seller_share_independent_of_chain(self, chain):
        base = Decimal("1234.56")
        breakdown = compute_splits(base, member(1, 70, 2), chain)
        assert breakdown.shares[0].amount == base * 70 / 100

    def test_incomplete_chain_distributes_less(self):
        breakdown = compute_splits(Decimal("1000"), member(1, 70, 2), [member(2, 100)])
        assert breakdown.distributed_total == Decimal("1000")
        assert not breakdown.is_complete

    def test_fractional_shares_sum_exactly(self):
        base = compute_base_commission(Decimal("333.33"), Decimal("1.0"))
        chain = [member(2, 90, 3), member(3, 110, 4), member(4, 130)]
        breakdown = compute_splits(base, member(1, 70, 2), chain)
        assert breakdown.distributed_total == breakdown.nominal_pool

    def test_zero_premium(self):
        breakdown = compute_splits(Decimal("0"), member(1, 70, 2), [member(2, 130)])
        assert breakdown.distributed_total == Decimal("0")


# ── Chain helpers ─────────────────────────────────────────


class TestChainHelpers:
    def test_direct_manager_and_owner(self):
        chain = [member(2, 100, 3), member(3, 130)]
        assert direct_manager(chain).id == 2
        assert chain_owner(chain).id == 3

    def test_empty_chain(self):
        assert direct_manager([]) is None
        assert chain_owner([]) is None


# ── FYC rate and base commission ──────────────────────────


class TestFycRate:
    def test_carrier_life_rate(self):
        assert fyc_rate_for(InsuranceKind.LIFE, _carrier(life_fyc=Decimal("1.10"))) == Decimal("1.10")

    def test_carrier_health_rate(self):
        assert fyc_rate_for(InsuranceKind.HEALTH, _carrier(health_fyc=Decimal("0.40"))) == Decimal("0.40")

    def test_unknown_carrier_falls_back(self):
        assert fyc_rate_for(InsuranceKind.LIFE, None) == DEFAULT_LIFE_FYC
        assert fyc_rate_for(InsuranceKind.HEALTH, None) == DEFAULT_HEALTH_FYC

    def test_missing_rate_falls_back(self):
        carrier = _carrier(life_fyc=Decimal("1.2"))
        assert fyc_rate_for(InsuranceKind.HEALTH, carrier) == Decimal("0.5")

    def test_custom_defaults(self):
        rate = fyc_rate_for(InsuranceKind.LIFE, None, default_life=Decimal("0.9"))
        assert rate == Decimal("0.9")


class TestBaseCommission:
    def test_premium_times_rate(self):
        assert compute_base_commission(Decimal("1000"), Decimal("1.1")) == Decimal("1100.00")

    def test_rounded_half_up_to_cents(self):
        assert compute_base_commission(Decimal("10.01"), Decimal("0.5")) == Decimal("5.01")
        assert compute_base_commission(Decimal("10.03"), Decimal("0.5")) == Decimal("5.02")

    def test_nominal_pool(self):
        assert nominal_pool(Decimal("1000")) == Decimal("1300")
