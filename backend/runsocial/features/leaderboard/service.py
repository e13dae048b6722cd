"""
Leaderboards over user aggregates.

Ranked by one value, highest first, ties broken by user id. For the
lifetime period the value is the user's aggregate column; for week, month
and year it is summed over the user's completed runs created inside the
window (users with no such runs score 0). Level is always lifetime.

Pages come from CursorPaginator; the rank of the first entry on a page is
computed by counting the users ahead of it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.features.runs.lifecycle import period_start
from runsocial.features.runs.models import Run
from runsocial.features.users.models import User
from runsocial.features.users.repository import UserRepository
from runsocial.shared.constants import LeaderboardMetric, RunState, StatsPeriod
from runsocial.shared.formulas import metres_to_km
from runsocial.shared.pagination import CursorPaginator, Page


LIFETIME_COLUMNS = {
    LeaderboardMetric.DISTANCE: User.total_distance_m,
    LeaderboardMetric.RUNS: User.total_runs,
    LeaderboardMetric.TIME: User.total_time,
    LeaderboardMetric.LEVEL: User.level,
}

WINDOW_AGGREGATES = {
    LeaderboardMetric.DISTANCE: lambda: func.sum(Run.distance_m),
    LeaderboardMetric.RUNS: lambda: func.count(Run.id),
    LeaderboardMetric.TIME: lambda: func.sum(Run.duration),
}


@dataclass
class LeaderboardEntry:
    rank: int
    user: User
    value: float


@dataclass
class UserRank:
    rank: int
    total_distance: float


class LeaderboardService:
    """
    Usage:
        service = LeaderboardService(db)
        page = await service.leaderboard(LeaderboardMetric.DISTANCE, period=StatsPeriod.WEEK)
        mine = await service.my_rank(user_id)
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)

    def _value_expression(
        self,
        metric: LeaderboardMetric,
        period: StatsPeriod,
        now: datetime
    ):
        since = period_start(period, now)
        if since is None or metric == LeaderboardMetric.LEVEL:
            return LIFETIME_COLUMNS[metric], None

        window = (
            select(Run.user_id, WINDOW_AGGREGATES[metric]().label("value"))
            .where(Run.state == RunState.COMPLETED.value, Run.created_at >= since)
            .group_by(Run.user_id)
            .subquery()
        )
        return func.coalesce(window.c.value, 0), window

    async def leaderboard(
        self,
        metric: LeaderboardMetric = LeaderboardMetric.DISTANCE,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        period: StatsPeriod = StatsPeriod.ALL,
        now: Optional[datetime] = None
    ) -> Page[LeaderboardEntry]:
        """
        One page of the leaderboard for a metric.

        Args:
            metric: Value to rank by
            cursor: ID of the last user already seen
            limit: Page size
            period: Window of completed runs counted (ALL = lifetime aggregates)
            now: End of the window, defaults to the current time

        Returns:
            Page of entries with 1-based ranks; next_cursor is a user ID.
            Distance values are in km, time in seconds.
        """
        metric = LeaderboardMetric(metric)
        value, window = self._value_expression(
            metric, StatsPeriod(period), now or datetime.utcnow()
        )

        query = select(User, value.label("value"))
        if window is not None:
            query = query.outerjoin(window, window.c.user_id == User.id)

        paginator = CursorPaginator(self.db, User, value, descending=True, rows=True)
        page = await paginator.paginate(query, cursor, limit)
        if not page.items:
            return Page(items=[], next_cursor=None)

        first_user, first_value = page.items[0]
        first_rank = await paginator.position_of(query, first_value, first_user.id) + 1

        entries = []
        for i, (user, raw) in enumerate(page.items):
            raw = raw or 0
            entries.append(LeaderboardEntry(
                rank=first_rank + i,
                user=user,
                value=metres_to_km(raw) if metric == LeaderboardMetric.DISTANCE else raw,
            ))
        return Page(items=entries, next_cursor=page.next_cursor)

    async def my_rank(self, user_id: str) -> UserRank:
        """
        Distance rank of a user: 1 + users with strictly greater total distance.

        Raises:
            NotFoundError: user does not exist
        """
        user = await self.users.require(user_id)
        await self.users.reload(user)

        result = await self.db.execute(
            select(func.count())
            .select_from(User)
            .where(User.total_distance_m > user.total_distance_m)
        )
        ahead = result.scalar() or 0
        return UserRank(rank=ahead + 1, total_distance=user.total_distance)
