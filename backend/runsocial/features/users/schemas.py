"""
User schemas.

Pydantic models for user, location and notification operations.
"""

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from typing import Optional, Any
from datetime import datetime


class UserResponse(BaseModel):
    """User with aggregates."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_public: bool
    is_location_public: bool
    is_currently_running: bool
    current_run_id: Optional[str] = None
    total_distance: float
    total_runs: int
    total_time: int
    xp: int
    level: int


class ProfileUpdate(BaseModel):
    """Partial profile and privacy update. Omitted fields are left unchanged."""

    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    username: Optional[str] = Field(
        default=None, min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$"
    )
    avatar_url: Optional[HttpUrl] = None
    is_public: Optional[bool] = None
    is_location_public: Optional[bool] = None


class LocationUpdate(BaseModel):
    """Update last-known location."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class NearbyUserResponse(BaseModel):
    """Runner near the search center."""

    id: str
    username: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    latitude: float
    longitude: float
    is_running: bool
    distance: float
    total_distance: float
    level: int


class NotificationResponse(BaseModel):
    """Notification response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    body: str
    from_user_id: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Page of notifications."""

    notifications: list[NotificationResponse]
    unread_count: int
    next_cursor: Optional[str] = None
