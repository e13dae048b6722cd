"""
Run-related database models.

Models:
- Run: One recorded run and its terminal metrics
- RunCoordinate: GPS fix recorded during a run
- RunSplit: Per-kilometer split, written at completion
- RunPhoto: Photo attached to a run (URL only)
"""

from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from runsocial.models.base import Base
from runsocial.shared.constants import RunState
from runsocial.shared.formulas import km_to_metres, metres_to_km


class Run(Base):
    """
    A run owned by exactly one user.

    State machine: ACTIVE <-> PAUSED -> COMPLETED (terminal).
    Terminal metrics are written once by the COMPLETED transition and
    never change afterwards.
    """

    __tablename__ = "runs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    route_id = Column(String(36), nullable=True)

    # Lifecycle
    state = Column(String(20), nullable=False, default=RunState.ACTIVE.value, index=True)
    is_paused = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    ended_at = Column(DateTime, nullable=True)

    # Terminal metrics
    distance_m = Column(Integer, nullable=False, default=0)  # metres
    duration = Column(Integer, nullable=False, default=0)  # seconds
    avg_pace = Column(Float, nullable=False, default=0.0)  # min/km
    max_pace = Column(Float, nullable=False, default=0.0)
    min_pace = Column(Float, nullable=False, default=0.0)
    calories = Column(Integer, nullable=False, default=0)
    elevation = Column(Float, nullable=False, default=0.0)
    elevation_gain = Column(Float, nullable=False, default=0.0)
    elevation_loss = Column(Float, nullable=False, default=0.0)

    weather = Column(String(100), nullable=True)
    map_snapshot_url = Column(String(500), nullable=True)

    # XP this run's completion awarded (distance + achievements).
    # Subtracted again if the run is deleted.
    xp_earned = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    coordinates = relationship(
        "RunCoordinate",
        back_populates="run",
        lazy="raise",
        order_by="[RunCoordinate.timestamp, RunCoordinate.id]",
    )
    splits = relationship(
        "RunSplit",
        back_populates="run",
        lazy="raise",
        order_by="RunSplit.km",
    )
    photos = relationship(
        "RunPhoto",
        back_populates="run",
        lazy="raise",
        order_by="RunPhoto.taken_at",
    )

    @property
    def distance(self) -> float:
        """Distance in km."""
        return metres_to_km(self.distance_m or 0)

    @distance.setter
    def distance(self, distance_km: float) -> None:
        self.distance_m = km_to_metres(distance_km)

    def __repr__(self):
        return f"<Run {self.id} {self.state} {self.distance}km>"

    @property
    def is_completed(self) -> bool:
        return self.state == RunState.COMPLETED.value


class RunCoordinate(Base):
    """
    GPS fix recorded during a run.

    Rows keep the order the client sent them in (autoincrement id).
    """

    __tablename__ = "run_coordinates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(36), ForeignKey("runs.id"), nullable=False, index=True)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float, nullable=True)
    speed = Column(Float, nullable=True)  # m/s
    accuracy = Column(Float, nullable=True)  # meters
    heading = Column(Float, nullable=True)  # degrees
    heart_rate = Column(Integer, nullable=True)  # bpm
    timestamp = Column(DateTime, nullable=False, index=True)

    # Relationship
    run = relationship("Run", back_populates="coordinates")

    def __repr__(self):
        return f"<RunCoordinate {self.id} ({self.latitude}, {self.longitude})>"


class RunSplit(Base):
    """
    Split data (1 km segments) supplied at completion.
    """

    __tablename__ = "run_splits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(36), ForeignKey("runs.id"), nullable=False, index=True)

    km = Column(Integer, nullable=False)  # 1, 2, 3...
    time = Column(Float, nullable=False)  # seconds
    pace = Column(Float, nullable=False)  # min/km
    elevation = Column(Float, nullable=False, default=0.0)
    avg_heart_rate = Column(Integer, nullable=True)

    # Relationship
    run = relationship("Run", back_populates="splits")

    def __repr__(self):
        return f"<Split km={self.km} {self.time}s>"


class RunPhoto(Base):
    """Photo taken during a run. Only the URL is stored."""

    __tablename__ = "run_photos"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    run_id = Column(String(36), ForeignKey("runs.id"), nullable=False, index=True)

    image_url = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    caption = Column(String(500), nullable=True)
    taken_at = Column(DateTime, default=datetime.utcnow)

    # Relationship
    run = relationship("Run", back_populates="photos")

    def __repr__(self):
        return f"<RunPhoto {self.id} run={self.run_id}>"
