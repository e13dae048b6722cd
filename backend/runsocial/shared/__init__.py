"""
Shared utilities (NOT business logic).

Usage:
    from runsocial.shared import haversine, CursorPaginator, NotFoundError
    from runsocial.shared.formulas import level_for_xp
"""
from .geo import (
    haversine,
    bounding_box,
    BoundingBox,
    EARTH_RADIUS_KM,
)
from .formulas import (
    xp_for_distance,
    level_for_xp,
    km_to_metres,
    metres_to_km,
)
from .constants import (
    RunState,
    AchievementType,
    NotificationType,
    LeaderboardMetric,
    StatsPeriod,
    XP_PER_KM,
    XP_PER_LEVEL,
    MAX_COORDINATES_PER_BATCH,
)
from .exceptions import (
    RunSocialError,
    NotFoundError,
    InvalidStateError,
    ValidationError,
    InvalidCursorError,
    ConflictError,
)
from .repository import BaseRepository
from .pagination import CursorPaginator, Page
from .notification_formatter import format_notification

__all__ = [
    # geo
    "haversine",
    "bounding_box",
    "BoundingBox",
    "EARTH_RADIUS_KM",
    # formulas
    "xp_for_distance",
    "level_for_xp",
    "km_to_metres",
    "metres_to_km",
    # constants
    "RunState",
    "AchievementType",
    "NotificationType",
    "LeaderboardMetric",
    "StatsPeriod",
    "XP_PER_KM",
    "XP_PER_LEVEL",
    "MAX_COORDINATES_PER_BATCH",
    # exceptions
    "RunSocialError",
    "NotFoundError",
    "InvalidStateError",
    "ValidationError",
    "InvalidCursorError",
    "ConflictError",
    # repository
    "BaseRepository",
    # pagination
    "CursorPaginator",
    "Page",
    # notification formatter
    "format_notification",
]
