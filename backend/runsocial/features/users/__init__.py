"""
User management module.

Usage:
    from runsocial.features.users import User, UserRepository, GeoProximityIndex

Models:
- User: Runner with location, privacy flags and aggregate statistics
- Notification: In-app notifications

Repositories:
- UserRepository: Data access for users
- NotificationRepository: Data access for notifications

Services:
- NotificationEmitter: Queue-then-flush notification writer
- GeoProximityIndex: Nearby runner search
"""

from .models import User, Notification
from .schemas import (
    UserResponse,
    ProfileUpdate,
    LocationUpdate,
    NearbyUserResponse,
    NotificationResponse,
    NotificationListResponse,
)
from .repository import UserRepository, NotificationRepository
from .notification_service import NotificationEmitter, PendingNotification
from .proximity import GeoProximityIndex, NearbyUser

__all__ = [
    # Models
    "User",
    "Notification",
    # Schemas
    "UserResponse",
    "ProfileUpdate",
    "LocationUpdate",
    "NearbyUserResponse",
    "NotificationResponse",
    "NotificationListResponse",
    # Repositories
    "UserRepository",
    "NotificationRepository",
    # Services
    "NotificationEmitter",
    "PendingNotification",
    "GeoProximityIndex",
    "NearbyUser",
]
