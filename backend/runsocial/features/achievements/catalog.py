"""
Default achievement catalog.

Seeded on startup (settings.seed_achievements_on_startup). Seeding is
idempotent: rows are matched by name and never updated once present.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.shared.constants import AchievementType
from .repository import AchievementRepository

logger = logging.getLogger(__name__)


DEFAULT_ACHIEVEMENTS = [
    # First run and total distance
    {"name": "First Steps", "description": "Complete your first run", "icon": "👟",
     "type": AchievementType.TOTAL_RUNS, "threshold": 1, "xp_reward": 50},
    {"name": "Getting Started", "description": "Run a total of 5 km", "icon": "🏃",
     "type": AchievementType.TOTAL_DISTANCE, "threshold": 5, "xp_reward": 100},
    {"name": "10K Club", "description": "Run a total of 10 km", "icon": "🎯",
     "type": AchievementType.TOTAL_DISTANCE, "threshold": 10, "xp_reward": 200},
    {"name": "Half Marathon", "description": "Run a total of 21.1 km", "icon": "🏅",
     "type": AchievementType.TOTAL_DISTANCE, "threshold": 21.1, "xp_reward": 500},
    {"name": "Marathon", "description": "Run a total of 42.2 km", "icon": "🏆",
     "type": AchievementType.TOTAL_DISTANCE, "threshold": 42.2, "xp_reward": 1000},
    {"name": "Century", "description": "Run a total of 100 km", "icon": "💯",
     "type": AchievementType.TOTAL_DISTANCE, "threshold": 100, "xp_reward": 2000},
    {"name": "Ultra Runner", "description": "Run a total of 500 km", "icon": "⚡",
     "type": AchievementType.TOTAL_DISTANCE, "threshold": 500, "xp_reward": 5000},

    # Single run distance
    {"name": "5K Runner", "description": "Complete a 5 km run", "icon": "5️⃣",
     "type": AchievementType.SINGLE_RUN_DISTANCE, "threshold": 5, "xp_reward": 150},
    {"name": "10K Runner", "description": "Complete a 10 km run", "icon": "🔟",
     "type": AchievementType.SINGLE_RUN_DISTANCE, "threshold": 10, "xp_reward": 300},
    {"name": "Half Marathoner", "description": "Complete a 21.1 km run", "icon": "🥈",
     "type": AchievementType.SINGLE_RUN_DISTANCE, "threshold": 21.1, "xp_reward": 750},
    {"name": "Marathoner", "description": "Complete a 42.2 km run", "icon": "🥇",
     "type": AchievementType.SINGLE_RUN_DISTANCE, "threshold": 42.2, "xp_reward": 1500},

    # Run count
    {"name": "Regular Runner", "description": "Complete 10 runs", "icon": "🔁",
     "type": AchievementType.TOTAL_RUNS, "threshold": 10, "xp_reward": 200},
    {"name": "Dedicated", "description": "Complete 50 runs", "icon": "💪",
     "type": AchievementType.TOTAL_RUNS, "threshold": 50, "xp_reward": 500},
    {"name": "Committed", "description": "Complete 100 runs", "icon": "🎖️",
     "type": AchievementType.TOTAL_RUNS, "threshold": 100, "xp_reward": 1000},
    {"name": "Legend", "description": "Complete 500 runs", "icon": "👑",
     "type": AchievementType.TOTAL_RUNS, "threshold": 500, "xp_reward": 5000},

    # Pace (min/km, lower is better)
    {"name": "Speed Demon", "description": "Run at sub 5:00 min/km pace", "icon": "💨",
     "type": AchievementType.SINGLE_RUN_PACE, "threshold": 5, "xp_reward": 300},
    {"name": "Lightning Fast", "description": "Run at sub 4:30 min/km pace", "icon": "⚡",
     "type": AchievementType.SINGLE_RUN_PACE, "threshold": 4.5, "xp_reward": 500},
    {"name": "Elite Pace", "description": "Run at sub 4:00 min/km pace", "icon": "🚀",
     "type": AchievementType.SINGLE_RUN_PACE, "threshold": 4, "xp_reward": 1000},
]


async def seed_default_achievements(db: AsyncSession) -> int:
    """
    Insert missing catalog achievements.

    Returns:
        Number of achievements created
    """
    repo = AchievementRepository(db)
    created = 0
    for entry in DEFAULT_ACHIEVEMENTS:
        if await repo.get_by(name=entry["name"]):
            continue
        await repo.create(**{**entry, "type": entry["type"].value})
        created += 1

    await db.commit()
    if created:
        logger.info(f"Seeded {created} achievements")
    return created
