"""
Hierarchy resolution over the upline relation.

Persons are loaded once into an id-keyed PersonDirectory and every walk
is an explicit loop over ids with a visited set, so malformed data
(cycles, dangling uplines, chains without an AO) always terminates.

Rules:
- An upline chain starts at the person's direct upline, never the person
- The chain stops after the first owner-tier (AO) member
- A cycle or a missing upline truncates the chain; this is logged, not raised
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.deal import Deal
from src.models.user import TOP_LEVEL, User, label_for_level
from src.schemas.hierarchy import HierarchyNode, HierarchyNodeStats

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLINE_DEPTH = 50


@dataclass(frozen=True)
class HierarchyMember:
    """Read-only view of a person as the commission engine sees it."""

    id: int
    name: str
    level: int
    upline_id: Optional[int] = None
    is_active: bool = True

    @property
    def is_owner(self) -> bool:
        return self.level >= TOP_LEVEL

    @property
    def role_label(self) -> str:
        return label_for_level(self.level)

    @classmethod
    def from_user(cls, user: User) -> "HierarchyMember":
        return cls(
            id=user.id,
            name=user.full_name,
            level=user.commission_level,
            upline_id=user.upline_id,
            is_active=user.is_active,
        )


class PersonDirectory:
    """
    Id-keyed lookup of hierarchy members.

    Usage:
        directory = await PersonDirectory.load(db)
        chain = resolve_upline(seller_id, directory)
    """

    def __init__(self, members: Iterable[HierarchyMember] = ()):
        self._members: Dict[int, HierarchyMember] = {m.id: m for m in members}
        self._children: Optional[Dict[int, List[HierarchyMember]]] = None

    @classmethod
    async def load(cls, db: AsyncSession) -> "PersonDirectory":
        """Load every person from the database."""
        result = await db.execute(select(User))
        return cls(HierarchyMember.from_user(user) for user in result.scalars().all())

    def get(self, person_id: Optional[int]) -> Optional[HierarchyMember]:
        if person_id is None:
            return None
        return self._members.get(person_id)

    def __contains__(self, person_id: object) -> bool:
        return person_id in self._members

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[HierarchyMember]:
        return iter(self._members.values())

    def children_of(self, person_id: int) -> List[HierarchyMember]:
        """Members whose upline is person_id, ordered by name."""
        if self._children is None:
            children: Dict[int, List[HierarchyMember]] = defaultdict(list)
            for member in self._members.values():
                if member.upline_id is not None and member.upline_id != member.id:
                    children[member.upline_id].append(member)
            for group in children.values():
                group.sort(key=lambda m: (m.name.lower(), m.id))
            self._children = children
        return list(self._children.get(person_id, []))


def resolve_upline(
    person_id: int,
    directory: PersonDirectory,
    max_depth: int = DEFAULT_MAX_UPLINE_DEPTH,
) -> List[HierarchyMember]:
    """
    Ordered upline chain of a person, nearest superior first.

    Args:
        person_id: Person whose superiors are wanted
        directory: Person lookup
        max_depth: Maximum number of hops to follow

    Returns:
        The chain, ending with the first AO when the hierarchy is intact.
        A chain without an AO at its tail is incomplete but still usable.
    """
    person = directory.get(person_id)
    if person is None:
        logger.warning(f"Cannot resolve upline: person {person_id} not found")
        return []

    chain: List[HierarchyMember] = []
    visited = {person_id}
    next_id = person.upline_id
    gap = None

    while next_id is not None:
        if next_id in visited:
            gap = f"cycle at person {next_id}"
            break
        if len(chain) >= max_depth:
            gap = f"depth limit of {max_depth} reached"
            break
        member = directory.get(next_id)
        if member is None:
            gap = f"dangling upline {next_id}"
            break

        visited.add(member.id)
        chain.append(member)
        if member.is_owner:
            break
        next_id = member.upline_id

    if gap:
        logger.warning(f"Upline chain of person {person_id} truncated: {gap}")
    elif not person.is_owner and not (chain and chain[-1].is_owner):
        logger.warning(f"Upline chain of person {person_id} ends without an owner")

    return chain


def downline_ids(
    person_id: int,
    directory: PersonDirectory,
    active_only: bool = True,
) -> List[int]:
    """
    Every person below person_id, breadth first.

    Inactive persons are skipped together with their subtree when
    active_only is set.
    """
    result: List[int] = []
    visited = {person_id}
    queue = deque([person_id])

    while queue:
        current = queue.popleft()
        for child in directory.children_of(current):
            if child.id in visited:
                continue
            if active_only and not child.is_active:
                continue
            visited.add(child.id)
            result.append(child.id)
            queue.append(child.id)

    return result


def direct_reports(
    person_id: int,
    directory: PersonDirectory,
    active_only: bool = True,
) -> List[HierarchyMember]:
    """Persons whose upline is person_id."""
    return [
        child for child in directory.children_of(person_id)
        if child.is_active or not active_only
    ]


def direct_report_for(
    seller_id: int,
    leader_id: int,
    directory: PersonDirectory,
) -> Optional[int]:
    """
    The leader's direct report whose subtree contains the seller.

    Walks from the seller toward the leader and stops at the first hop
    whose upline is the leader. Returns None when the seller is not
    below the leader.
    """
    current = directory.get(seller_id)
    if current is None or seller_id == leader_id:
        return None

    visited = {current.id}
    while current.upline_id is not None:
        if current.upline_id == leader_id:
            return current.id
        if current.upline_id in visited:
            return None
        parent = directory.get(current.upline_id)
        if parent is None:
            return None
        visited.add(parent.id)
        current = parent

    return None


def is_in_downline(person_id: int, leader_id: int, directory: PersonDirectory) -> bool:
    return direct_report_for(person_id, leader_id, directory) is not None


def build_hierarchy_tree(
    root_id: int,
    directory: PersonDirectory,
    production: Optional[Dict[int, Tuple[Decimal, int]]] = None,
    max_depth: int = 10,
) -> Optional[HierarchyNode]:
    """
    Nested view of a person's active downline.

    Args:
        root_id: Person at the top of the tree
        directory: Person lookup
        production: person id -> (premium total, deal count) for the period
        max_depth: Recruits deeper than this are counted but not expanded

    Returns:
        Root node, or None if the person does not exist
    """
    root = directory.get(root_id)
    if root is None:
        return None
    return _build_node(root, directory, production or {}, 0, max_depth, {root.id})


def _build_node(
    member: HierarchyMember,
    directory: PersonDirectory,
    production: Dict[int, Tuple[Decimal, int]],
    depth: int,
    max_depth: int,
    path: set,
) -> HierarchyNode:
    below = downline_ids(member.id, directory)
    by_level: Dict[str, int] = {}
    for person_id in below:
        label = directory.get(person_id).role_label
        by_level[label] = by_level.get(label, 0) + 1

    premium, deal_count = production.get(member.id, (Decimal("0"), 0))

    recruits: List[HierarchyNode] = []
    if depth < max_depth:
        for child in direct_reports(member.id, directory):
            if child.id in path:
                continue
            recruits.append(
                _build_node(child, directory, production, depth + 1, max_depth, path | {child.id})
            )

    return HierarchyNode(
        id=member.id,
        name=member.name,
        role=member.role_label,
        commission_level=member.level,
        is_active=member.is_active,
        stats=HierarchyNodeStats(
            total_downline=len(below),
            by_level=by_level,
            personal_production=premium,
            personal_deals=deal_count,
        ),
        direct_recruits=recruits,
    )


async def load_production(
    db: AsyncSession,
    seller_ids: Iterable[int],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Dict[int, Tuple[Decimal, int]]:
    """
    Premium total and deal count per seller.

    Args:
        seller_ids: Sellers to report on
        start, end: Optional application date window (inclusive)
    """
    ids = list(seller_ids)
    if not ids:
        return {}

    query = (
        select(
            Deal.seller_id,
            func.coalesce(func.sum(Deal.annual_premium), 0),
            func.count(Deal.id),
        )
        .where(Deal.seller_id.in_(ids))
        .group_by(Deal.seller_id)
    )
    if start is not None:
        query = query.where(Deal.application_date >= start)
    if end is not None:
        query = query.where(Deal.application_date <= end)

    result = await db.execute(query)
    return {
        seller_id: (Decimal(str(premium)), count)
        for seller_id, premium, count in result.all()
    }
