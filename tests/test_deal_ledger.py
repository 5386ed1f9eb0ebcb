"""
Tests for deal recording, recomputation and deletion against SQLite.

Covers:
- Splits and payouts written with the deal
- Input validation (nothing written on failure)
- Recompute on premium edit, reschedule on effective date edit
- Optimistic version conflicts
- Cascade delete
- Weekly payout loaders over persisted rows
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from conftest import add_person
from src.models import (
    Carrier,
    CommissionSplit,
    Deal,
    InsuranceKind,
    LadderTier,
    Payout,
    PayoutKind,
)
from src.schemas.deal import DealCreate
from src.services.deal_ledger import can_modify_deal, delete_deal, record_deal, update_deal
from src.services.errors import ConcurrentRecomputeError, DealNotFoundError, InvalidDealInput
from src.services.hierarchy import PersonDirectory
from src.services.payouts import team_weekly_payout, weekly_payout

# Friday; deposits land on Wednesday 2025-01-22
EFFECTIVE = date(2025, 1, 17)


def _deal_input(**kwargs):
    defaults = {
        "client_name": "Ada Brooks",
        "carrier_name": "Unlisted Carrier",
        "insurance_kind": InsuranceKind.LIFE,
        "annual_premium": Decimal("1000"),
        "application_date": date(2025, 1, 2),
        "effective_date": EFFECTIVE,
    }
    defaults.update(kwargs)
    return DealCreate(**defaults)


async def _count(db, model):
    return await db.scalar(select(func.count()).select_from(model))


# ── record_deal ───────────────────────────────────────────


class TestRecordDeal:
    @pytest.mark.asyncio
    async def test_splits_and_payouts_written(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        assert deal.base_commission == Decimal("1000.00")
        assert deal.fyc_rate == Decimal("1.0")
        assert deal.manager_id == ladder["ga"].id
        assert deal.owner_id == ladder["ao"].id
        assert deal.deposit_date == date(2025, 1, 22)
        assert deal.version == 1

        assert [(s.beneficiary_id, s.amount) for s in deal.splits] == [
            (ladder["prodigy"].id, Decimal("700")),
            (ladder["ga"].id, Decimal("300")),
            (ladder["ao"].id, Decimal("300")),
        ]
        assert deal.distributed_total == deal.total_commission_pool == Decimal("1300")

        assert len(deal.payouts) == 3
        assert {p.split_id for p in deal.payouts} == {s.id for s in deal.splits}
        assert [p.kind for p in deal.payouts] == [
            PayoutKind.BASE_COMMISSION, PayoutKind.OVERRIDE, PayoutKind.OVERRIDE,
        ]
        assert all(p.week_start == date(2025, 1, 20) for p in deal.payouts)
        assert all(p.week_end == date(2025, 1, 26) for p in deal.payouts)

    @pytest.mark.asyncio
    async def test_carrier_rate_applies(self, db_session, ladder):
        db_session.add(Carrier(name="Mutual Life", life_fyc=Decimal("1.1"), insurance_kinds=["life"]))
        await db_session.flush()

        deal = await record_deal(
            db_session,
            ladder["prodigy"].id,
            _deal_input(carrier_name="mutual life"),
        )
        assert deal.fyc_rate == Decimal("1.1")
        assert deal.base_commission == Decimal("1100.00")

    @pytest.mark.asyncio
    async def test_no_effective_date_means_no_payouts(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input(effective_date=None))

        assert deal.deposit_date is None
        assert len(deal.splits) == 3
        assert deal.payouts == []

    @pytest.mark.asyncio
    async def test_unknown_seller_writes_nothing(self, db_session, ladder):
        with pytest.raises(InvalidDealInput):
            await record_deal(db_session, 9999, _deal_input())

        assert await _count(db_session, Deal) == 0
        assert await _count(db_session, CommissionSplit) == 0

    @pytest.mark.asyncio
    async def test_negative_premium_rejected(self, db_session, ladder):
        data = DealCreate.model_construct(**{
            **_deal_input().model_dump(),
            "annual_premium": Decimal("-1"),
        })
        with pytest.raises(InvalidDealInput) as exc:
            await record_deal(db_session, ladder["prodigy"].id, data)

        assert exc.value.code == "invalid_input"
        assert await _count(db_session, Deal) == 0

    @pytest.mark.asyncio
    async def test_broken_chain_still_records(self, db_session, ladder):
        orphan = await add_person(db_session, "oscar_orphan", LadderTier.SA)

        deal = await record_deal(db_session, orphan.id, _deal_input())

        assert [s.beneficiary_id for s in deal.splits] == [orphan.id]
        assert deal.distributed_total == Decimal("900")
        assert deal.manager_id is None
        assert deal.owner_id is None


# ── update_deal ───────────────────────────────────────────


class TestUpdateDeal:
    @pytest.mark.asyncio
    async def test_premium_edit_replaces_splits(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()
        old_split_ids = {s.id for s in deal.splits}

        updated = await update_deal(
            db_session,
            deal.id,
            {"annual_premium": Decimal("2000")},
            expected_version=1,
        )
        await db_session.commit()

        assert updated.version == 2
        assert updated.base_commission == Decimal("2000.00")
        assert [s.amount for s in updated.splits] == [
            Decimal("1400"), Decimal("600"), Decimal("600"),
        ]
        assert not old_split_ids & {s.id for s in updated.splits}
        assert sum(p.amount for p in updated.payouts) == Decimal("2600")
        assert await _count(db_session, CommissionSplit) == 3
        assert await _count(db_session, Payout) == 3

    @pytest.mark.asyncio
    async def test_effective_date_edit_keeps_splits(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input(effective_date=None))
        await db_session.commit()
        split_ids = [s.id for s in deal.splits]

        updated = await update_deal(db_session, deal.id, {"effective_date": date(2025, 1, 13)})
        await db_session.commit()

        assert [s.id for s in updated.splits] == split_ids
        assert updated.deposit_date == date(2025, 1, 16)
        assert len(updated.payouts) == 3
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_clearing_effective_date_removes_payouts(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        updated = await update_deal(db_session, deal.id, {"effective_date": None})
        await db_session.commit()

        assert updated.deposit_date is None
        assert updated.payouts == []
        assert await _count(db_session, Payout) == 0

    @pytest.mark.asyncio
    async def test_recompute_bumps_version_once_with_autoflush(self, db_session, session_factory, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        async with session_factory(autoflush=True) as session:
            updated = await update_deal(
                session,
                deal.id,
                {"annual_premium": Decimal("2000"), "carrier_name": " Unlisted Carrier "},
                expected_version=1,
            )
            await session.commit()

            assert updated.version == 2
            assert updated.carrier_name == "Unlisted Carrier"
            assert updated.base_commission == Decimal("2000.00")

            again = await update_deal(
                session,
                deal.id,
                {"insurance_kind": InsuranceKind.HEALTH},
                expected_version=2,
            )
            assert again.version == 3
            assert again.base_commission == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_detail_edit_only_bumps_version(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()
        split_ids = [s.id for s in deal.splits]

        updated = await update_deal(db_session, deal.id, {"notes": "Called client"}, expected_version=1)

        assert updated.notes == "Called client"
        assert updated.version == 2
        assert [s.id for s in updated.splits] == split_ids

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()
        await update_deal(db_session, deal.id, {"notes": "first"}, expected_version=1)
        await db_session.commit()

        with pytest.raises(ConcurrentRecomputeError) as exc:
            await update_deal(
                db_session,
                deal.id,
                {"annual_premium": Decimal("5000")},
                expected_version=1,
            )

        assert exc.value.code == "conflict"
        assert exc.value.details["current_version"] == 2

    @pytest.mark.asyncio
    async def test_hierarchy_change_applies_on_recompute(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        ladder["prodigy"].upline_id = ladder["ba"].id
        await db_session.commit()

        updated = await update_deal(db_session, deal.id, {"carrier_name": "Unlisted Carrier"})

        assert [s.beneficiary_id for s in updated.splits] == [
            ladder["prodigy"].id, ladder["ba"].id, ladder["ao"].id,
        ]
        assert updated.manager_id == ladder["ba"].id

    @pytest.mark.asyncio
    async def test_negative_premium_rejected(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        with pytest.raises(InvalidDealInput):
            await update_deal(db_session, deal.id, {"annual_premium": Decimal("-5")})

    @pytest.mark.asyncio
    async def test_missing_deal(self, db_session, ladder):
        with pytest.raises(DealNotFoundError):
            await update_deal(db_session, 12345, {"notes": "x"})


# ── delete_deal / permissions ─────────────────────────────


class TestDeleteDeal:
    @pytest.mark.asyncio
    async def test_cascades_to_splits_and_payouts(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        await delete_deal(db_session, deal.id)
        await db_session.commit()

        assert await _count(db_session, Deal) == 0
        assert await _count(db_session, CommissionSplit) == 0
        assert await _count(db_session, Payout) == 0

    @pytest.mark.asyncio
    async def test_missing_deal(self, db_session, ladder):
        with pytest.raises(DealNotFoundError):
            await delete_deal(db_session, 777)


class TestCanModifyDeal:
    @pytest.mark.asyncio
    async def test_permissions(self, db_session, ladder):
        deal = await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        outsider = await add_person(db_session, "olga_outsider", LadderTier.MGA)
        directory = await PersonDirectory.load(db_session)

        assert can_modify_deal(ladder["prodigy"], deal, directory)
        assert can_modify_deal(ladder["ga"], deal, directory)
        assert can_modify_deal(ladder["ao"], deal, directory)
        assert not can_modify_deal(ladder["ba"], deal, directory)
        assert not can_modify_deal(outsider, deal, directory)

        outsider.is_admin = True
        assert can_modify_deal(outsider, deal, directory)


# ── Payout loaders ────────────────────────────────────────


class TestPayoutLoaders:
    @pytest.mark.asyncio
    async def test_weekly_payout_from_database(self, db_session, ladder):
        await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await record_deal(db_session, ladder["ga"].id, _deal_input(client_name="Ben Carter"))
        await db_session.commit()

        summary = await weekly_payout(db_session, ladder["ga"].id, date(2025, 1, 20))

        assert summary.payouts.personal_commission == Decimal("1000")
        assert summary.payouts.override_earnings == Decimal("300")
        assert summary.payouts.total == Decimal("1300")
        assert summary.daily_breakdown["Wednesday"].amount == Decimal("1300")
        assert {line.agent for line in summary.deals} == {"You", ladder["prodigy"].full_name}

    @pytest.mark.asyncio
    async def test_other_week_is_empty(self, db_session, ladder):
        await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        summary = await weekly_payout(db_session, ladder["ga"].id, date(2025, 1, 13))
        assert summary.payouts.total == Decimal("0")

    @pytest.mark.asyncio
    async def test_unknown_person(self, db_session, ladder):
        assert await weekly_payout(db_session, 4242, date(2025, 1, 20)) is None

    @pytest.mark.asyncio
    async def test_team_weekly_payout(self, db_session, ladder):
        await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await record_deal(db_session, ladder["ba"].id, _deal_input(annual_premium=Decimal("500")))
        await db_session.commit()

        summary = await team_weekly_payout(db_session, ladder["ao"].id, date(2025, 1, 22))

        assert summary.team_totals.total_deals == 2
        assert summary.team_totals.total_production == Decimal("1500")
        # 300 on the prodigy deal, 500 x 50% on the BA deal
        assert summary.team_totals.your_override == Decimal("550")
        assert [e.agent_id for e in summary.agent_breakdown] == [ladder["ga"].id, ladder["ba"].id]

    @pytest.mark.asyncio
    async def test_team_view_includes_inactive_subtree(self, db_session, ladder):
        ladder["ga"].is_active = False
        await db_session.commit()

        await record_deal(db_session, ladder["prodigy"].id, _deal_input())
        await db_session.commit()

        weekly = await weekly_payout(db_session, ladder["ao"].id, date(2025, 1, 20))
        team = await team_weekly_payout(db_session, ladder["ao"].id, date(2025, 1, 20))

        assert weekly.payouts.override_earnings == Decimal("300")
        assert team.team_totals.your_override == weekly.payouts.override_earnings
        assert team.team_totals.total_deals == 1
        assert [e.agent_id for e in team.agent_breakdown] == [ladder["ga"].id]
