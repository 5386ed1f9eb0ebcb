"""Hierarchy API endpoints: downline tree, direct recruits, upline chain."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.config import settings
from src.db import get_db
from src.models import User
from src.schemas.hierarchy import (
    DirectRecruitResponse,
    DirectRecruitsResponse,
    HierarchyNode,
    UplineChainResponse,
    UplineMemberResponse,
)
from src.services.hierarchy import (
    PersonDirectory,
    build_hierarchy_tree,
    direct_reports,
    downline_ids,
    is_in_downline,
    load_production,
    resolve_upline,
)

router = APIRouter(prefix="/hierarchy", tags=["Hierarchy"])


def _check_visible(user: User, person_id: int, directory: PersonDirectory) -> None:
    """Everyone sees themselves and their downline; AOs and admins see everyone."""
    if person_id == user.id or user.is_admin or user.tier.is_owner:
        return
    if not is_in_downline(person_id, user.id, directory):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Person is not in your downline",
        )


def _require_person(person_id: int, directory: PersonDirectory):
    member = directory.get(person_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Person not found",
        )
    return member


@router.get("", response_model=HierarchyNode)
async def get_hierarchy_tree(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    root_id: Optional[int] = Query(None, description="Tree root, defaults to you"),
    max_depth: Optional[int] = Query(None, ge=1, le=50),
    start: Optional[date] = Query(None, description="Production window start"),
    end: Optional[date] = Query(None, description="Production window end"),
):
    """Nested downline with per-person stats."""
    directory = await PersonDirectory.load(db)
    person_id = root_id or current_user.id
    _require_person(person_id, directory)
    _check_visible(current_user, person_id, directory)

    team = [person_id] + downline_ids(person_id, directory)
    production = await load_production(db, team, start, end)

    return build_hierarchy_tree(
        person_id,
        directory,
        production,
        max_depth=max_depth or settings.hierarchy_tree_max_depth,
    )


@router.get("/direct", response_model=DirectRecruitsResponse)
async def get_direct_recruits(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    user_id: Optional[int] = Query(None, description="Whose recruits, defaults to you"),
):
    """Active direct recruits with their downline size and production."""
    directory = await PersonDirectory.load(db)
    person_id = user_id or current_user.id
    person = _require_person(person_id, directory)
    _check_visible(current_user, person_id, directory)

    recruits = direct_reports(person_id, directory)
    production = await load_production(db, [r.id for r in recruits])

    items = []
    for recruit in recruits:
        premium, deal_count = production.get(recruit.id, (0, 0))
        items.append(
            DirectRecruitResponse(
                id=recruit.id,
                name=recruit.name,
                role=recruit.role_label,
                commission_level=recruit.level,
                total_downline=len(downline_ids(recruit.id, directory)),
                personal_production=premium,
                personal_deals=deal_count,
            )
        )

    return DirectRecruitsResponse(
        items=items,
        total=len(items),
        upline_id=person.upline_id,
    )


@router.get("/upline", response_model=UplineChainResponse)
async def get_upline_chain(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    user_id: Optional[int] = Query(None, description="Whose chain, defaults to you"),
):
    """The override chain that earns on this person's sales, nearest first."""
    directory = await PersonDirectory.load(db)
    person_id = user_id or current_user.id
    person = _require_person(person_id, directory)
    _check_visible(current_user, person_id, directory)

    chain = resolve_upline(person_id, directory, settings.max_upline_depth)

    return UplineChainResponse(
        person_id=person_id,
        chain=[
            UplineMemberResponse(
                id=member.id,
                name=member.name,
                role=member.role_label,
                commission_level=member.level,
            )
            for member in chain
        ],
        is_complete=person.is_owner or bool(chain and chain[-1].is_owner),
    )
