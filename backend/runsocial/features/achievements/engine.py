"""
Achievement engine.

Evaluates every locked achievement rule after a run completes and unlocks
the satisfied ones exactly once.

Rule kinds (closed set, see AchievementType):

    TOTAL_DISTANCE       user.total_distance >= threshold
    TOTAL_RUNS           user.total_runs >= threshold
    SINGLE_RUN_DISTANCE  run distance >= threshold
    SINGLE_RUN_PACE      0 < run avg pace <= threshold (lower is better)

Rules are independent of each other; XP for all unlocks of one pass is
applied in a single statement so level is recomputed once.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.features.runs.repository import RunRepository
from runsocial.features.runs.stats import StatReconciler, XpChange
from runsocial.features.users.models import User
from runsocial.features.users.notification_service import NotificationEmitter
from runsocial.shared.constants import AchievementType, NotificationType
from runsocial.shared.exceptions import NotFoundError
from runsocial.shared.formulas import metres_to_km
from .models import Achievement, UserAchievement
from .repository import AchievementRepository, UserAchievementRepository

logger = logging.getLogger(__name__)


@dataclass
class RuleInputs:
    """Values a rule can be evaluated against."""
    total_distance: float
    total_runs: int
    run_distance: float
    run_pace: float


@dataclass
class EvaluationResult:
    """Outcome of one evaluation pass."""
    unlocked: list[Achievement] = field(default_factory=list)
    xp_awarded: int = 0
    xp_change: Optional[XpChange] = None


def evaluate_rule(kind: str, threshold: float, inputs: RuleInputs) -> tuple[float, bool]:
    """
    Evaluate one achievement rule.

    Args:
        kind: AchievementType value
        threshold: Rule threshold
        inputs: Post-update aggregates and this run's metrics

    Returns:
        (progress, satisfied)

    Raises:
        ValueError: unknown rule kind
    """
    kind = AchievementType(kind)

    if kind == AchievementType.TOTAL_DISTANCE:
        progress = inputs.total_distance
        return progress, progress >= threshold

    if kind == AchievementType.TOTAL_RUNS:
        progress = float(inputs.total_runs)
        return progress, progress >= threshold

    if kind == AchievementType.SINGLE_RUN_DISTANCE:
        progress = inputs.run_distance
        return progress, progress >= threshold

    if kind == AchievementType.SINGLE_RUN_PACE:
        progress = inputs.run_pace
        return progress, 0 < progress <= threshold

    raise ValueError(f"Unhandled achievement type: {kind}")


class AchievementEngine:
    """
    Unlocks achievements for a user after a run.

    Usage:
        engine = AchievementEngine(db, emitter)
        result = await engine.evaluate(user_id, run.distance, run)
        await db.commit()
        await emitter.flush()
    """

    def __init__(self, db: AsyncSession, emitter: NotificationEmitter):
        self.db = db
        self.emitter = emitter
        self.achievements = AchievementRepository(db)
        self.user_achievements = UserAchievementRepository(db)
        self.stats = StatReconciler(db, emitter)
        self.runs = RunRepository(db)

    async def evaluate(self, user_id: str, run_distance: float, run) -> EvaluationResult:
        """
        Evaluate all locked rules for user against this run.

        Progress is recorded for every locked rule. Satisfied rules are
        unlocked (once), their XP is added to the user and to the run's
        xp_earned, and an achievement-unlocked notification is queued.

        Args:
            user_id: Run owner
            run_distance: Distance of the run just completed (km)
            run: The completed run (id, avg_pace are read)

        Returns:
            EvaluationResult with newly unlocked achievements
        """
        inputs = await self._rule_inputs(user_id, run_distance, run)
        rules = await self.achievements.get_locked_for_user(user_id)
        now = datetime.utcnow()
        result = EvaluationResult()

        for rule in rules:
            progress, satisfied = evaluate_rule(rule.type, rule.threshold, inputs)
            await self.user_achievements.ensure(user_id, rule.id)

            if not satisfied:
                await self.user_achievements.set_progress(user_id, rule.id, progress)
                continue

            # A concurrent evaluation may have unlocked it first
            if not await self.user_achievements.unlock(user_id, rule.id, progress, now):
                continue

            result.unlocked.append(rule)
            result.xp_awarded += rule.xp_reward
            self.emitter.notify(
                user_id,
                NotificationType.ACHIEVEMENT_UNLOCKED.value,
                {
                    "achievement_id": rule.id,
                    "achievement_name": rule.name,
                    "run_id": run.id,
                },
            )

        if result.xp_awarded:
            await self.runs.add_xp_earned(run.id, result.xp_awarded)
            result.xp_change = await self.stats.award_xp(user_id, result.xp_awarded)

        if result.unlocked:
            names = ", ".join(a.name for a in result.unlocked)
            logger.info(f"User {user_id} unlocked {names} (+{result.xp_awarded}xp)")

        return result

    async def list_for_user(self, user_id: str, unlocked_only: bool = False) -> list[UserAchievement]:
        """
        User's achievement progress.

        Raises:
            NotFoundError: user does not exist
        """
        exists = await self.db.execute(select(User.id).where(User.id == user_id))
        if exists.first() is None:
            raise NotFoundError(f"User {user_id} not found")
        return await self.user_achievements.list_for_user(user_id, unlocked_only)

    async def _rule_inputs(self, user_id: str, run_distance: float, run) -> RuleInputs:
        result = await self.db.execute(
            select(User.total_distance_m, User.total_runs).where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError(f"User {user_id} not found")
        return RuleInputs(
            total_distance=metres_to_km(row.total_distance_m),
            total_runs=row.total_runs,
            run_distance=run_distance,
            run_pace=run.avg_pace or 0.0,
        )
