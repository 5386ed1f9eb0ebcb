"""Weekly payout API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_manager
from src.db import get_db
from src.models import User
from src.schemas.payout import TeamWeeklyPayoutResponse, WeeklyPayoutResponse
from src.services.hierarchy import PersonDirectory, is_in_downline
from src.services.payouts import team_weekly_payout, weekly_payout
from src.services.scheduling import parse_week_start

router = APIRouter(prefix="/payouts", tags=["Payouts"])


def _week(value: Optional[str]):
    try:
        return parse_week_start(value)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.get("/weekly", response_model=WeeklyPayoutResponse)
async def get_weekly_payout(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    week_start: Optional[str] = Query(None, description="Any date of the week, YYYY-MM-DD"),
    user_id: Optional[int] = Query(None, description="Person to report on, defaults to you"),
):
    """
    Weekly payout summary: personal commission, override earnings,
    seven-day breakdown and per-deal lines.
    """
    week = _week(week_start)
    target_id = user_id or current_user.id

    if target_id != current_user.id and not (current_user.is_admin or current_user.tier.is_owner):
        directory = await PersonDirectory.load(db)
        if not is_in_downline(target_id, current_user.id, directory):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Person is not in your downline",
            )

    summary = await weekly_payout(db, target_id, week)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Person not found",
        )
    return summary


@router.get("/weekly/team", response_model=TeamWeeklyPayoutResponse)
async def get_team_weekly_payout(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
    week_start: Optional[str] = Query(None, description="Any date of the week, YYYY-MM-DD"),
):
    """Team production for the week, attributed to your direct reports."""
    summary = await team_weekly_payout(db, current_user.id, _week(week_start))
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Person not found",
        )
    return summary
