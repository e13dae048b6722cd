"""
Unified constants for runs, gamification and notifications.

This module provides a single source of truth for state names and
limits used across the entire application.
"""

from enum import Enum


class RunState(str, Enum):
    """
    Run lifecycle states.

    ACTIVE is the initial state, COMPLETED is terminal.
    """
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


class AchievementType(str, Enum):
    """
    Closed set of achievement rule kinds.

    Evaluated by runsocial.features.achievements.engine.evaluate_rule.
    """
    TOTAL_DISTANCE = "TOTAL_DISTANCE"
    TOTAL_RUNS = "TOTAL_RUNS"
    SINGLE_RUN_DISTANCE = "SINGLE_RUN_DISTANCE"
    SINGLE_RUN_PACE = "SINGLE_RUN_PACE"


class NotificationType(str, Enum):
    """Notification kinds emitted by the engine."""
    RUN_COMPLETED = "run_completed"
    LEVEL_UP = "level_up"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"


class LeaderboardMetric(str, Enum):
    """Aggregate a leaderboard is ranked by."""
    DISTANCE = "distance"
    RUNS = "runs"
    TIME = "time"
    LEVEL = "level"


class StatsPeriod(str, Enum):
    """Time window for run summaries."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


# =============================================================================
# Gamification
# =============================================================================

XP_PER_KM = 10
XP_PER_LEVEL = 1000


# =============================================================================
# Input limits
# =============================================================================

MAX_COORDINATES_PER_BATCH = 1000

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)
HEART_RATE_RANGE = (0, 300)
HEADING_RANGE = (0.0, 360.0)

NEARBY_RADIUS_RANGE_KM = (0.1, 50.0)
