"""
Achievement models.

Models:
- Achievement: Immutable unlock rule (kind, threshold, xp reward)
- UserAchievement: Per-user progress and one-time unlock of a rule
"""

from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Integer, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from runsocial.models.base import Base


class Achievement(Base):
    """
    Achievement rule definition.

    type is one of AchievementType; see engine.evaluate_rule.
    """

    __tablename__ = "achievements"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500), nullable=False, default="")
    icon = Column(String(20), nullable=True)

    type = Column(String(30), nullable=False, index=True)
    threshold = Column(Float, nullable=False)
    xp_reward = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Achievement {self.name} {self.type} >= {self.threshold}>"


class UserAchievement(Base):
    """
    Progress of one user towards one achievement.

    unlocked_at is set at most once and never cleared.
    One row per (user, achievement), enforced by a unique constraint.
    """

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = Column(String(36), ForeignKey("achievements.id"), nullable=False)

    progress = Column(Float, nullable=False, default=0.0)
    unlocked_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    achievement = relationship("Achievement", lazy="joined")

    def __repr__(self):
        return f"<UserAchievement {self.user_id}:{self.achievement_id} {self.progress}>"

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None
