"""
Achievements module.

Usage:
    from runsocial.features.achievements import AchievementEngine
    from runsocial.features.achievements.catalog import seed_default_achievements

Available components:
- Achievement, UserAchievement: SQLAlchemy models
- AchievementEngine: Evaluates and unlocks rules after a run
- evaluate_rule: Single dispatch over AchievementType
"""
from .models import Achievement, UserAchievement
from .schemas import AchievementResponse, UserAchievementResponse
from .repository import AchievementRepository, UserAchievementRepository
from .engine import AchievementEngine, EvaluationResult, RuleInputs, evaluate_rule

__all__ = [
    "Achievement",
    "UserAchievement",
    "AchievementResponse",
    "UserAchievementResponse",
    # Repositories
    "AchievementRepository",
    "UserAchievementRepository",
    # Engine
    "AchievementEngine",
    "EvaluationResult",
    "RuleInputs",
    "evaluate_rule",
]
