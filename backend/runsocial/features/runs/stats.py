"""
Aggregate statistics for users.

StatReconciler is the only writer of User.total_distance_m, total_runs,
total_time, xp and level. Every change is one UPDATE statement built from
column expressions, so concurrent completions for the same user cannot
lose updates, and level is recomputed in the same statement as xp.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.features.users.models import User
from runsocial.features.users.notification_service import NotificationEmitter
from runsocial.shared.constants import NotificationType, XP_PER_LEVEL
from runsocial.shared.exceptions import NotFoundError
from runsocial.shared.formulas import km_to_metres, level_for_xp, xp_for_distance

logger = logging.getLogger(__name__)


@dataclass
class XpChange:
    """Result of an xp mutation."""
    xp: int
    level: int
    previous_level: int

    @property
    def leveled_up(self) -> bool:
        return self.level > self.previous_level


def _clamped(column, amount):
    """column - amount, floored at zero."""
    return case((column - amount < 0, 0), else_=column - amount)


class StatReconciler:
    """
    Applies and reverses the aggregate contribution of a run.

    Usage:
        stats = StatReconciler(db, emitter)
        change = await stats.on_complete(user_id, run)
        ...
        await stats.on_delete(user_id, run)
    """

    def __init__(self, db: AsyncSession, emitter: NotificationEmitter):
        self.db = db
        self.emitter = emitter

    async def on_complete(self, user_id: str, run, notify: bool = True) -> XpChange:
        """
        Add a completed run to the user's aggregates.

        Distance, duration, one run and floor(distance * 10) xp are added
        in one statement. Emits one level-up notification (final level)
        if the level increased, unless notify is False.

        Args:
            user_id: Run owner
            run: Completed run (distance, duration are read)
            notify: Queue the level-up notification here

        Returns:
            XpChange with the new xp and level
        """
        metres = km_to_metres(run.distance)
        xp_delta = xp_for_distance(run.distance)
        new_xp = User.xp + xp_delta

        await self._execute(
            user_id,
            total_distance_m=User.total_distance_m + metres,
            total_runs=User.total_runs + 1,
            total_time=User.total_time + run.duration,
            xp=new_xp,
            level=new_xp // XP_PER_LEVEL + 1,
        )

        change = await self._xp_change(user_id, xp_delta)
        logger.info(
            f"User {user_id}: +{run.distance}km +{xp_delta}xp "
            f"(xp={change.xp}, level={change.level})"
        )
        if notify:
            self.notify_level_up(user_id, change)
        return change

    async def on_delete(self, user_id: str, run) -> XpChange:
        """
        Remove a completed run's contribution from the user's aggregates.

        Uses the run's stored metrics and stored xp_earned, never
        recomputed values. Every decrement is clamped at zero. No
        notification is emitted.

        Args:
            user_id: Run owner
            run: Completed run being deleted

        Returns:
            XpChange with the new xp and level
        """
        metres = km_to_metres(run.distance)
        xp_delta = run.xp_earned or 0
        new_xp = _clamped(User.xp, xp_delta)

        await self._execute(
            user_id,
            total_distance_m=_clamped(User.total_distance_m, metres),
            total_runs=_clamped(User.total_runs, 1),
            total_time=_clamped(User.total_time, run.duration),
            xp=new_xp,
            level=new_xp // XP_PER_LEVEL + 1,
        )

        change = await self._xp_change(user_id, -xp_delta)
        logger.info(
            f"User {user_id}: -{run.distance}km -{xp_delta}xp "
            f"(xp={change.xp}, level={change.level})"
        )
        return change

    async def award_xp(self, user_id: str, amount: int) -> XpChange:
        """
        Add xp (achievement rewards) and recompute level atomically.

        Emits one level-up notification if the level increased.
        """
        new_xp = User.xp + amount
        await self._execute(user_id, xp=new_xp, level=new_xp // XP_PER_LEVEL + 1)

        change = await self._xp_change(user_id, amount)
        self.notify_level_up(user_id, change)
        return change

    async def _execute(self, user_id: str, **values) -> None:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"User {user_id} not found")

    async def _xp_change(self, user_id: str, xp_delta: int) -> XpChange:
        result = await self.db.execute(
            select(User.xp, User.level).where(User.id == user_id)
        )
        xp, level = result.one()
        return XpChange(
            xp=xp,
            level=level,
            previous_level=level_for_xp(xp - xp_delta),
        )

    def notify_level_up(self, user_id: str, change: XpChange) -> None:
        """Queue a level-up notification carrying the final level."""
        if not change.leveled_up:
            return
        logger.info(f"User {user_id} reached level {change.level}")
        self.emitter.notify(
            user_id,
            NotificationType.LEVEL_UP.value,
            {"level": change.level},
        )
