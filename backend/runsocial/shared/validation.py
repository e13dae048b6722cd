"""
Range checks for engine inputs.

Request shapes are validated by the API schemas; these checks run again
inside the engine so a bad value can never reach the aggregates.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from .constants import HEADING_RANGE, HEART_RATE_RANGE, LATITUDE_RANGE, LONGITUDE_RANGE
from .exceptions import ValidationError


def _check_range(name: str, value: Optional[float], bounds: tuple) -> None:
    if value is None:
        return
    low, high = bounds
    if not math.isfinite(value) or not low <= value <= high:
        raise ValidationError(f"{name} must be between {low} and {high}, got {value}")


def check_latitude(value: float) -> None:
    if value is None:
        raise ValidationError("latitude is required")
    _check_range("latitude", value, LATITUDE_RANGE)


def check_longitude(value: float) -> None:
    if value is None:
        raise ValidationError("longitude is required")
    _check_range("longitude", value, LONGITUDE_RANGE)


def check_heart_rate(value: Optional[float], name: str = "heart_rate") -> None:
    _check_range(name, value, HEART_RATE_RANGE)


def check_heading(value: Optional[float]) -> None:
    _check_range("heading", value, HEADING_RANGE)


def check_finite(name: str, value: Optional[float]) -> None:
    """Reject NaN and infinities; None passes."""
    if value is None:
        return
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number, got {value}")


def check_non_negative(name: str, value: Optional[float]) -> None:
    """Reject negative or non-finite values; None passes."""
    check_finite(name, value)
    if value is not None and value < 0:
        raise ValidationError(f"{name} must be >= 0, got {value}")


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
