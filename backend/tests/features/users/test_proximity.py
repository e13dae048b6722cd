"""
Tests for GeoProximityIndex.

Nearby search: prefilter, exact haversine filter, privacy and freshness.
"""

import math
from datetime import timedelta

import pytest

from runsocial.features.users.models import User
from runsocial.features.users.proximity import GeoProximityIndex
from runsocial.shared.exceptions import NotFoundError, ValidationError
from runsocial.shared.geo import EARTH_RADIUS_KM, haversine


def north_of_origin(km: float) -> float:
    """Latitude exactly `km` north of (0, 0) along the meridian."""
    return math.degrees(km / EARTH_RADIUS_KM)


@pytest.fixture
def index(db):
    return GeoProximityIndex(db)


@pytest.fixture
def runner(make_user, now):
    """Factory for a public runner with a fresh location."""

    async def _runner(username, latitude, longitude, **values):
        defaults = dict(
            username=username,
            is_public=True,
            is_location_public=True,
            latitude=latitude,
            longitude=longitude,
            last_location_update=now - timedelta(minutes=5),
        )
        defaults.update(values)
        return await make_user(**defaults)

    return _runner


# =============================================================================
# Test radius filter
# =============================================================================

class TestNearbyRadius:
    """Exact great-circle filtering."""

    async def test_scenario_inside_and_outside(self, index, runner, now):
        """4.90 km is included (rounded), 5.10 km is excluded."""
        a = await runner("a", north_of_origin(4.90), 0.0)
        await runner("b", north_of_origin(5.10), 0.0)

        found = await index.nearby(0.0, 0.0, 5.0, now=now)

        assert [n.user.id for n in found] == [a.id]
        assert found[0].distance_km == 4.9

    async def test_box_corner_excluded(self, index, runner, now):
        """Inside the bounding box but outside the circle."""
        offset = math.degrees(4.0 / EARTH_RADIUS_KM)
        corner = await runner("corner", offset, offset)
        assert haversine(0.0, 0.0, corner.latitude, corner.longitude) > 5.0

        found = await index.nearby(0.0, 0.0, 5.0, now=now)
        assert found == []

    async def test_sorted_by_distance(self, index, runner, now):
        """Closest first, distances rounded to 2 decimals."""
        far = await runner("far", north_of_origin(3.0), 0.0)
        near = await runner("near", -north_of_origin(1.234), 0.0)
        mid = await runner("mid", 0.0, north_of_origin(2.0))

        found = await index.nearby(0.0, 0.0, 5.0, now=now)

        assert [n.user.id for n in found] == [near.id, mid.id, far.id]
        assert [n.distance_km for n in found] == [1.23, 2.0, 3.0]

    async def test_never_exceeds_radius(self, index, runner, now):
        """No result is farther than the radius."""
        for i in range(20):
            angle = i * 18
            km = 0.5 * i
            await runner(
                f"r{i}",
                43.2 + math.degrees(km / EARTH_RADIUS_KM) * math.cos(math.radians(angle)),
                76.9 + math.degrees(km / EARTH_RADIUS_KM) * math.sin(math.radians(angle)),
            )

        found = await index.nearby(43.2, 76.9, 4.0, now=now)

        assert found
        for n in found:
            assert haversine(43.2, 76.9, n.user.latitude, n.user.longitude) <= 4.0

    async def test_near_pole(self, index, runner, now):
        """Search near the pole does not blow up the longitude band."""
        across = await runner("across", 89.99, 179.0)
        found = await index.nearby(89.99, 0.0, 5.0, now=now)
        assert [n.user.id for n in found] == [across.id]


# =============================================================================
# Test visibility rules
# =============================================================================

class TestNearbyVisibility:
    """Privacy, freshness and caller exclusion."""

    async def test_private_users_hidden(self, index, runner, now):
        """Both is_public and is_location_public are required."""
        await runner("private", 0.01, 0.0, is_public=False)
        await runner("hidden", 0.01, 0.0, is_location_public=False)
        visible = await runner("visible", 0.01, 0.0)

        found = await index.nearby(0.0, 0.0, 5.0, now=now)
        assert [n.user.id for n in found] == [visible.id]

    async def test_stale_location_hidden(self, index, runner, now):
        """Locations older than 24 hours are ignored."""
        await runner("stale", 0.01, 0.0, last_location_update=now - timedelta(hours=25))
        fresh = await runner("fresh", 0.01, 0.0, last_location_update=now - timedelta(hours=23))

        found = await index.nearby(0.0, 0.0, 5.0, now=now)
        assert [n.user.id for n in found] == [fresh.id]

    async def test_caller_excluded(self, index, runner, now):
        """The caller never finds themself."""
        me = await runner("me", 0.0, 0.0)
        found = await index.nearby(0.0, 0.0, 5.0, exclude_user_id=me.id, now=now)
        assert found == []

    async def test_no_location(self, index, make_user, now):
        """Users that never shared a location are skipped."""
        await make_user(is_public=True, is_location_public=True, last_location_update=now)
        assert await index.nearby(0.0, 0.0, 5.0, now=now) == []


# =============================================================================
# Test input validation and location updates
# =============================================================================

class TestNearbyValidation:
    """Range checks."""

    @pytest.mark.parametrize("radius", [0.05, 50.1, -1.0])
    async def test_radius_bounds(self, index, radius):
        with pytest.raises(ValidationError):
            await index.nearby(0.0, 0.0, radius)

    @pytest.mark.parametrize("lat,lng", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5), (float("nan"), 0.0)])
    async def test_center_bounds(self, index, lat, lng):
        with pytest.raises(ValidationError):
            await index.nearby(lat, lng, 5.0)

    async def test_radius_edges_accepted(self, index, now):
        """0.1 and 50 km are valid."""
        assert await index.nearby(0.0, 0.0, 0.1, now=now) == []
        assert await index.nearby(0.0, 0.0, 50.0, now=now) == []


class TestUpdateLocation:
    """Tests for update_location."""

    async def test_stores_location(self, index, make_user, fetch):
        user = await make_user()
        updated = await index.update_location(user.id, 43.25, 76.95)

        assert updated.latitude == 43.25
        assert updated.longitude == 76.95
        assert updated.last_location_update is not None

        stored = await fetch(User, user.id)
        assert stored.latitude == 43.25

    async def test_unknown_user(self, index):
        with pytest.raises(NotFoundError):
            await index.update_location("missing", 1.0, 1.0)

    async def test_out_of_range(self, index, make_user):
        user = await make_user()
        with pytest.raises(ValidationError):
            await index.update_location(user.id, 100.0, 0.0)
