"""
User-related models.

Models:
- User: Runner with privacy flags, last-known location and aggregates
- Notification: In-app notifications (run completed, level up, achievements)
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship
import uuid

from runsocial.models.base import Base
from runsocial.shared.formulas import km_to_metres, metres_to_km


class User(Base):
    """
    Application user.

    Aggregates (total_distance_m, total_runs, total_time, xp) always equal
    the sums over the user's completed runs and are only changed through
    atomic UPDATE expressions (see features/runs/stats.py).
    level is stored for leaderboard queries and recomputed in the same
    statement as xp.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(30), unique=True, index=True, nullable=True)

    # Profile
    full_name = Column(String(100), nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Privacy
    is_public = Column(Boolean, nullable=False, default=True)
    is_location_public = Column(Boolean, nullable=False, default=False)

    # Last-known location
    latitude = Column(Float, nullable=True, index=True)
    longitude = Column(Float, nullable=True, index=True)
    last_location_update = Column(DateTime, nullable=True)

    # Active run pointer (cleared together with the run's completion)
    is_currently_running = Column(Boolean, nullable=False, default=False)
    current_run_id = Column(String(36), nullable=True)

    # Aggregates
    total_distance_m = Column(Integer, nullable=False, default=0)  # metres
    total_runs = Column(Integer, nullable=False, default=0)
    total_time = Column(Integer, nullable=False, default=0)  # seconds
    xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    notifications = relationship(
        "Notification",
        back_populates="user",
        foreign_keys="Notification.user_id",
        lazy="raise",
        cascade="all, delete-orphan"
    )

    @property
    def total_distance(self) -> float:
        """Total distance in km."""
        return metres_to_km(self.total_distance_m or 0)

    @total_distance.setter
    def total_distance(self, distance_km: float) -> None:
        self.total_distance_m = km_to_metres(distance_km)

    def __repr__(self):
        return f"<User {self.id} ({self.username})>"


class Notification(Base):
    """
    User notification.

    Types:
    - run_completed: A run was finished
    - level_up: XP crossed one or more level thresholds (final level only)
    - achievement_unlocked: An achievement rule was satisfied
    """

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    from_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    # Notification type
    type = Column(String(50), nullable=False)

    title = Column(String(200), nullable=False)
    body = Column(String(500), nullable=False)

    # Related ids (run_id, achievement_id, level)
    data = Column(JSON, nullable=True)

    # Status
    read = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="notifications", foreign_keys=[user_id])

    def __repr__(self):
        return f"<Notification {self.id} type={self.type} read={self.read}>"
