"""
Gamification formulas.

XP and level are derived with these functions everywhere, including
inside SQL update expressions (see features/runs/stats.py).

Distances are stored as whole metres so that aggregate sums and their
reversal are exact integer arithmetic; kilometres appear only at the edges.
"""

from .constants import XP_PER_KM, XP_PER_LEVEL

METRES_PER_KM = 1000


def km_to_metres(distance_km: float) -> int:
    """Kilometres to whole metres (nearest)."""
    return int(round(distance_km * METRES_PER_KM))


def metres_to_km(distance_m: int) -> float:
    return distance_m / METRES_PER_KM


def xp_for_distance(distance_km: float) -> int:
    """
    XP earned for running a distance.

    Args:
        distance_km: Run distance in kilometers

    Returns:
        floor(distance * 10), never negative
    """
    if distance_km <= 0:
        return 0
    return km_to_metres(distance_km) * XP_PER_KM // METRES_PER_KM


def level_for_xp(xp: int) -> int:
    """
    Level for an XP total: floor(xp / 1000) + 1.

    Example:
        >>> level_for_xp(0), level_for_xp(999), level_for_xp(1000)
        (1, 1, 2)
    """
    return max(xp, 0) // XP_PER_LEVEL + 1
