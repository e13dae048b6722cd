"""
Achievement repositories.

UserAchievement rows are created with INSERT ... ON CONFLICT DO NOTHING
and unlocked with an UPDATE guarded by "unlocked_at IS NULL", so two
concurrent evaluations for the same (user, achievement) unlock it once.
"""

from datetime import datetime

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.shared.repository import BaseRepository
from .models import Achievement, UserAchievement


class AchievementRepository(BaseRepository[Achievement]):
    """Repository for Achievement rules."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Achievement)

    async def get_locked_for_user(self, user_id: str) -> list[Achievement]:
        """Rules the user has not unlocked yet (including never evaluated)."""
        result = await self.db.execute(
            select(Achievement)
            .outerjoin(
                UserAchievement,
                and_(
                    UserAchievement.achievement_id == Achievement.id,
                    UserAchievement.user_id == user_id,
                ),
            )
            .where(UserAchievement.unlocked_at.is_(None))
            .order_by(Achievement.type, Achievement.threshold)
        )
        return list(result.scalars().all())


class UserAchievementRepository(BaseRepository[UserAchievement]):
    """Repository for per-user achievement progress."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, UserAchievement)

    async def ensure(self, user_id: str, achievement_id: str) -> None:
        """Create the (user, achievement) row unless it exists."""
        await self.insert_ignore(
            ["user_id", "achievement_id"],
            user_id=user_id,
            achievement_id=achievement_id,
            progress=0.0,
        )

    async def set_progress(self, user_id: str, achievement_id: str, progress: float) -> int:
        """
        Record latest progress on a locked achievement.

        Unlocked rows are left untouched.

        Returns:
            Number of rows updated
        """
        result = await self.db.execute(
            update(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .where(UserAchievement.achievement_id == achievement_id)
            .where(UserAchievement.unlocked_at.is_(None))
            .values(progress=progress, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def unlock(
        self,
        user_id: str,
        achievement_id: str,
        progress: float,
        unlocked_at: datetime
    ) -> bool:
        """
        Unlock an achievement unless already unlocked.

        Returns:
            True if this call performed the unlock
        """
        result = await self.db.execute(
            update(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .where(UserAchievement.achievement_id == achievement_id)
            .where(UserAchievement.unlocked_at.is_(None))
            .values(progress=progress, unlocked_at=unlocked_at, updated_at=unlocked_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_for_user(self, user_id: str, unlocked_only: bool = False) -> list[UserAchievement]:
        """User's achievement rows, most recently unlocked first."""
        query = select(UserAchievement).where(UserAchievement.user_id == user_id)
        if unlocked_only:
            query = query.where(UserAchievement.unlocked_at.is_not(None))
        result = await self.db.execute(
            query.order_by(
                UserAchievement.unlocked_at.desc().nulls_last(),
                UserAchievement.created_at.desc(),
            ).execution_options(populate_existing=True)
        )
        return list(result.unique().scalars().all())
