"""
Achievement schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AchievementResponse(BaseModel):
    """Achievement rule."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    icon: Optional[str] = None
    type: str
    threshold: float
    xp_reward: int


class UserAchievementResponse(BaseModel):
    """User's progress towards an achievement."""

    model_config = ConfigDict(from_attributes=True)

    achievement: AchievementResponse
    progress: float
    unlocked_at: Optional[datetime] = None
