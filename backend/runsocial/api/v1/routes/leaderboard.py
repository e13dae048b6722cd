"""
Leaderboard Routes
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.api.deps import get_caller_id
from runsocial.db.session import get_async_db
from runsocial.features.leaderboard import (
    LeaderboardEntryResponse,
    LeaderboardResponse,
    LeaderboardService,
    MyRankResponse,
)
from runsocial.shared.constants import LeaderboardMetric, StatsPeriod

router = APIRouter()


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    metric: LeaderboardMetric = LeaderboardMetric.DISTANCE,
    period: StatsPeriod = StatsPeriod.WEEK,
    cursor: Optional[str] = None,
    limit: Optional[int] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """Users ranked by distance, runs, time or level over a period."""
    page = await LeaderboardService(db).leaderboard(metric, cursor, limit, period=period)
    return LeaderboardResponse(
        metric=metric.value,
        period=period.value,
        entries=[
            LeaderboardEntryResponse(
                rank=e.rank,
                user_id=e.user.id,
                username=e.user.username,
                name=e.user.full_name,
                avatar_url=e.user.avatar_url,
                value=e.value,
            )
            for e in page.items
        ],
        next_cursor=page.next_cursor,
    )


@router.get("/my-rank", response_model=MyRankResponse)
async def my_rank(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_async_db),
):
    rank = await LeaderboardService(db).my_rank(caller_id)
    return MyRankResponse(rank=rank.rank, total_distance=rank.total_distance)
