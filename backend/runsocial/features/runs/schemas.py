"""
Run schemas.

Pydantic models for the run lifecycle: inputs used by the engine and the
API, and response models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from runsocial.shared.constants import MAX_COORDINATES_PER_BATCH


# =============================================================================
# Inputs
# =============================================================================

class Location(BaseModel):
    """A lat/lng pair."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class CoordinateInput(BaseModel):
    """GPS fix sent by the client."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    altitude: Optional[float] = None
    speed: Optional[float] = Field(default=None, ge=0)
    accuracy: Optional[float] = Field(default=None, ge=0)
    heading: Optional[float] = Field(default=None, ge=0, le=360)
    heart_rate: Optional[int] = Field(default=None, ge=0, le=300)
    timestamp: datetime


class SplitInput(BaseModel):
    """One kilometer split."""

    km: int = Field(ge=1)
    time: float = Field(ge=0)  # seconds
    pace: float = Field(ge=0)  # min/km
    elevation: float = 0.0
    avg_heart_rate: Optional[int] = Field(default=None, ge=0, le=300)


class RunMetrics(BaseModel):
    """Terminal metrics written when a run completes."""

    distance: float = Field(default=0.0, ge=0)  # km
    duration: int = Field(default=0, ge=0)  # seconds
    avg_pace: float = Field(default=0.0, ge=0)  # min/km
    max_pace: float = Field(default=0.0, ge=0)
    min_pace: float = Field(default=0.0, ge=0)
    calories: int = Field(default=0, ge=0)
    elevation: float = 0.0
    elevation_gain: float = Field(default=0.0, ge=0)
    elevation_loss: float = Field(default=0.0, ge=0)
    weather: Optional[str] = Field(default=None, max_length=100)
    map_snapshot_url: Optional[str] = Field(default=None, max_length=500)


class StartRunRequest(BaseModel):
    """Start a run, optionally at a known location."""

    route_id: Optional[str] = None
    location: Optional[Location] = None


class AddCoordinatesRequest(BaseModel):
    """Batch of GPS fixes, in recording order."""

    coordinates: list[CoordinateInput] = Field(
        min_length=1, max_length=MAX_COORDINATES_PER_BATCH
    )


class CompleteRunRequest(RunMetrics):
    """Finish a run with its metrics and optional splits."""

    splits: Optional[list[SplitInput]] = None


class PhotoCreate(BaseModel):
    """Attach a photo to a run."""

    image_url: str = Field(max_length=500)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    caption: Optional[str] = Field(default=None, max_length=500)


# =============================================================================
# Responses
# =============================================================================

class RunResponse(BaseModel):
    """Run summary."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    route_id: Optional[str] = None
    state: str
    is_paused: bool
    started_at: datetime
    ended_at: Optional[datetime] = None
    distance: float
    duration: int
    avg_pace: float
    max_pace: float
    min_pace: float
    calories: int
    elevation: float
    elevation_gain: float
    elevation_loss: float
    weather: Optional[str] = None
    map_snapshot_url: Optional[str] = None
    xp_earned: int
    created_at: datetime


class CoordinateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    speed: Optional[float] = None
    accuracy: Optional[float] = None
    heading: Optional[float] = None
    heart_rate: Optional[int] = None
    timestamp: datetime


class SplitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    km: int
    time: float
    pace: float
    elevation: float
    avg_heart_rate: Optional[int] = None


class PhotoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    run_id: str
    image_url: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    caption: Optional[str] = None
    taken_at: datetime


class RunDetailResponse(RunResponse):
    """Run with coordinates, splits and photos."""

    coordinates: list[CoordinateResponse] = []
    splits: list[SplitResponse] = []
    photos: list[PhotoResponse] = []


class RunListResponse(BaseModel):
    runs: list[RunResponse]
    next_cursor: Optional[str] = None


class CoordinateListResponse(BaseModel):
    coordinates: list[CoordinateResponse]
    next_cursor: Optional[str] = None


class CoordinatesAdded(BaseModel):
    success: bool = True
    count: int


class RunSummaryResponse(BaseModel):
    """Aggregated statistics over completed runs in a period."""

    total_runs: int
    total_distance: float
    total_duration: int
    total_calories: int
    total_elevation: float
    avg_pace: float
    avg_distance: float
    longest_run: float
    fastest_pace: float
    runs_by_day: dict[str, float]
