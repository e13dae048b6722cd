"""
Nearby runner search.

Two passes:
1. Bounding-box prefilter in SQL (cheap, rectangular, over-inclusive)
2. Exact haversine filter in Python (great-circle distance <= radius)

Known limitation: the longitude band does not wrap around +/-180 degrees,
so a query centered next to the antimeridian misses runners just across it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from runsocial.config import settings
from runsocial.shared.constants import LATITUDE_RANGE, LONGITUDE_RANGE, NEARBY_RADIUS_RANGE_KM
from runsocial.shared.exceptions import ValidationError
from runsocial.shared.geo import bounding_box, haversine
from runsocial.shared.validation import check_latitude, check_longitude
from .models import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class NearbyUser:
    """A runner found near the search center."""
    user: User
    distance_km: float


class GeoProximityIndex:
    """
    Finds public runners near a point.

    Usage:
        index = GeoProximityIndex(db)
        found = await index.nearby(43.23, 76.94, radius_km=5, exclude_user_id=me)
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)

    async def update_location(self, user_id: str, latitude: float, longitude: float) -> User:
        """
        Store the caller's last-known location.

        Raises:
            NotFoundError: user does not exist
            ValidationError: coordinates out of range
        """
        check_latitude(latitude)
        check_longitude(longitude)

        user = await self.users.require(user_id)
        await self.users.set_location(user_id, latitude, longitude)
        await self.db.commit()
        return await self.users.reload(user)

    async def nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        exclude_user_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> list[NearbyUser]:
        """
        Find runners within radius_km of a point.

        Args:
            latitude, longitude: Search center (degrees)
            radius_km: Search radius, 0.1..50 km
            exclude_user_id: Caller, never included in results
            now: Reference time for the location freshness window

        Returns:
            Runners sorted by distance ascending, distance rounded to 2 decimals
        """
        check_latitude(latitude)
        check_longitude(longitude)
        min_radius, max_radius = NEARBY_RADIUS_RANGE_KM
        if not min_radius <= radius_km <= max_radius:
            raise ValidationError(
                f"radius must be between {min_radius} and {max_radius} km, got {radius_km}"
            )

        now = now or datetime.utcnow()
        fresh_after = now - timedelta(hours=settings.nearby_location_max_age_hours)
        box = bounding_box(latitude, longitude, radius_km)

        query = (
            select(User)
            .where(User.is_public == True)  # noqa: E712
            .where(User.is_location_public == True)  # noqa: E712
            .where(User.last_location_update >= fresh_after)
            .where(User.latitude.is_not(None))
            .where(User.longitude.is_not(None))
            .where(User.latitude.between(*LATITUDE_RANGE))
            .where(User.longitude.between(*LONGITUDE_RANGE))
            .where(User.latitude.between(box.min_lat, box.max_lat))
        )
        if not box.spans_all_longitudes:
            query = query.where(User.longitude.between(box.min_lon, box.max_lon))
        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)

        result = await self.db.execute(query)
        candidates = list(result.scalars().all())

        found = []
        for user in candidates:
            distance = haversine(latitude, longitude, user.latitude, user.longitude)
            if distance <= radius_km:
                found.append(NearbyUser(user=user, distance_km=round(distance, 2)))

        found.sort(key=lambda n: n.distance_km)

        logger.debug(
            f"nearby({latitude}, {longitude}, {radius_km}km): "
            f"{len(candidates)} candidates, {len(found)} within radius"
        )
        return found
