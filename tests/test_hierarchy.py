"""
Tests for upline resolution and downline walks.

Covers:
- resolve_upline ordering, AO termination, cycle / dangling / depth safety
- downline_ids, direct_reports, direct_report_for, is_in_downline
- build_hierarchy_tree stats
- PersonDirectory.load from the database
"""

import logging
from decimal import Decimal

import pytest

from conftest import directory_of, member
from src.models import LadderTier
from src.services.hierarchy import (
    PersonDirectory,
    build_hierarchy_tree,
    direct_report_for,
    direct_reports,
    downline_ids,
    is_in_downline,
    load_production,
    resolve_upline,
)


def _standard_tree():
    """
    1 AO
    ├── 2 MGA (Mia)
    │   ├── 4 SA (Sam)
    │   │   └── 6 Prodigy (Pia)
    │   └── 5 BA (Ben)
    └── 3 GA (Gus)
        └── 7 Prodigy (Quinn, inactive)
    """
    return directory_of(
        member(1, 130, None, "Olivia"),
        member(2, 110, 1, "Mia"),
        member(3, 100, 1, "Gus"),
        member(4, 90, 2, "Sam"),
        member(5, 80, 2, "Ben"),
        member(6, 70, 4, "Pia"),
        member(7, 70, 3, "Quinn", is_active=False),
    )


# ── resolve_upline ────────────────────────────────────────


class TestResolveUpline:
    def test_chain_is_nearest_first_and_ends_at_ao(self):
        chain = resolve_upline(6, _standard_tree())
        assert [m.id for m in chain] == [4, 2, 1]

    def test_chain_never_contains_the_person(self):
        chain = resolve_upline(6, _standard_tree())
        assert 6 not in [m.id for m in chain]

    def test_owner_has_empty_chain(self):
        assert resolve_upline(1, _standard_tree()) == []

    def test_stops_after_first_ao(self):
        directory = directory_of(
            member(1, 130, None),
            member(2, 130, 1),
            member(3, 70, 2),
        )
        chain = resolve_upline(3, directory)
        assert [m.id for m in chain] == [2]

    def test_unknown_person_returns_empty(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert resolve_upline(99, _standard_tree()) == []
        assert "not found" in caplog.text

    def test_cycle_terminates_with_at_most_three_nodes(self, caplog):
        directory = directory_of(
            member(1, 70, 2),
            member(2, 80, 3),
            member(3, 90, 1),
        )
        with caplog.at_level(logging.WARNING):
            chain = resolve_upline(1, directory)

        ids = [m.id for m in chain]
        assert len(ids) == len(set(ids))
        assert len(set(ids) | {1}) <= 3
        assert ids == [2, 3]
        assert "cycle" in caplog.text

    def test_self_upline_is_a_cycle(self):
        directory = directory_of(member(1, 70, 1))
        assert resolve_upline(1, directory) == []

    def test_dangling_upline_returns_partial_chain(self, caplog):
        directory = directory_of(
            member(1, 70, 2),
            member(2, 90, 42),
        )
        with caplog.at_level(logging.WARNING):
            chain = resolve_upline(1, directory)
        assert [m.id for m in chain] == [2]
        assert "dangling upline 42" in caplog.text

    def test_chain_without_owner_is_logged(self, caplog):
        directory = directory_of(
            member(1, 70, 2),
            member(2, 90, None),
        )
        with caplog.at_level(logging.WARNING):
            chain = resolve_upline(1, directory)
        assert [m.id for m in chain] == [2]
        assert "without an owner" in caplog.text

    def test_depth_limit(self, caplog):
        members = [member(i, 80, i + 1) for i in range(1, 20)]
        members.append(member(20, 130, None))
        with caplog.at_level(logging.WARNING):
            chain = resolve_upline(1, directory_of(*members), max_depth=5)
        assert [m.id for m in chain] == [2, 3, 4, 5, 6]
        assert "depth limit" in caplog.text


# ── Downline walks ────────────────────────────────────────


class TestDownline:
    def test_downline_is_breadth_first(self):
        assert downline_ids(1, _standard_tree()) == [3, 2, 5, 4, 6]

    def test_inactive_members_skipped_with_subtree(self):
        assert 7 not in downline_ids(1, _standard_tree())
        assert 7 in downline_ids(1, _standard_tree(), active_only=False)

    def test_downline_survives_cycle(self):
        directory = directory_of(
            member(1, 70, 2),
            member(2, 80, 1),
        )
        assert downline_ids(1, directory) == [2]

    def test_direct_reports_sorted_by_name(self):
        reports = direct_reports(2, _standard_tree())
        assert [r.name for r in reports] == ["Ben", "Sam"]

    def test_direct_reports_active_only(self):
        assert direct_reports(3, _standard_tree()) == []
        assert [r.id for r in direct_reports(3, _standard_tree(), active_only=False)] == [7]

    def test_direct_report_for_deep_seller(self):
        assert direct_report_for(6, 1, _standard_tree()) == 2
        assert direct_report_for(6, 2, _standard_tree()) == 4
        assert direct_report_for(6, 4, _standard_tree()) == 6

    def test_direct_report_for_outside_downline(self):
        assert direct_report_for(6, 3, _standard_tree()) is None
        assert direct_report_for(1, 2, _standard_tree()) is None

    def test_direct_report_for_self_is_none(self):
        assert direct_report_for(2, 2, _standard_tree()) is None

    def test_is_in_downline(self):
        directory = _standard_tree()
        assert is_in_downline(6, 1, directory)
        assert not is_in_downline(1, 6, directory)
        assert not is_in_downline(5, 3, directory)


# ── build_hierarchy_tree ──────────────────────────────────


class TestHierarchyTree:
    def test_tree_shape_and_stats(self):
        production = {6: (Decimal("1200.00"), 2)}
        root = build_hierarchy_tree(2, _standard_tree(), production)

        assert root.id == 2
        assert root.role == "MGA"
        assert [r.name for r in root.direct_recruits] == ["Ben", "Sam"]
        assert root.stats.total_downline == 3
        assert root.stats.by_level == {"BA": 1, "SA": 1, "Prodigy": 1}

        sam = root.direct_recruits[1]
        pia = sam.direct_recruits[0]
        assert pia.stats.personal_production == Decimal("1200.00")
        assert pia.stats.personal_deals == 2
        assert pia.direct_recruits == []

    def test_max_depth_limits_expansion_not_counts(self):
        root = build_hierarchy_tree(1, _standard_tree(), max_depth=1)
        assert root.stats.total_downline == 5
        for child in root.direct_recruits:
            assert child.direct_recruits == []

    def test_unknown_root(self):
        assert build_hierarchy_tree(99, _standard_tree()) is None


# ── Database loading ──────────────────────────────────────


class TestDirectoryLoad:
    @pytest.mark.asyncio
    async def test_load_from_database(self, db_session, ladder):
        directory = await PersonDirectory.load(db_session)

        assert len(directory) == 4
        chain = resolve_upline(ladder["prodigy"].id, directory)
        assert [m.id for m in chain] == [ladder["ga"].id, ladder["ao"].id]
        assert directory.get(ladder["ga"].id).level == LadderTier.GA.level

    @pytest.mark.asyncio
    async def test_load_production_empty(self, db_session, ladder):
        assert await load_production(db_session, []) == {}
        assert await load_production(db_session, [ladder["prodigy"].id]) == {}
