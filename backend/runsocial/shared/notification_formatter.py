"""
Notification text formatters.

Formats notification data into a (title, body) pair.

Notification types:
- run_completed: distance of the finished run
- level_up: new (final) level
- achievement_unlocked: achievement name
"""

from typing import Optional


def format_notification(
    notification_type: str,
    data: Optional[dict]
) -> Optional[tuple[str, str]]:
    """
    Format notification title and body.

    Args:
        notification_type: Type of notification
        data: Notification data dict

    Returns:
        (title, body) or None if unknown type
    """
    formatters = {
        "run_completed": _format_run_completed,
        "level_up": _format_level_up,
        "achievement_unlocked": _format_achievement_unlocked,
    }

    formatter = formatters.get(notification_type)
    if formatter:
        return formatter(data or {})
    return None


def _format_run_completed(data: dict) -> tuple[str, str]:
    distance = data.get("distance", 0.0) or 0.0
    return (
        "Run Completed",
        f"Great job! You ran {distance:.2f} km",
    )


def _format_level_up(data: dict) -> tuple[str, str]:
    level = data.get("level", 1)
    return (
        "Level Up!",
        f"Congratulations! You reached level {level}",
    )


def _format_achievement_unlocked(data: dict) -> tuple[str, str]:
    name = data.get("achievement_name", "an achievement")
    return (
        "Achievement Unlocked!",
        f'You earned "{name}"',
    )
