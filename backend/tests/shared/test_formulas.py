"""
Tests for shared formulas module.

Tests XP and level formulas used by the stat reconciler.
"""

import pytest

from runsocial.shared.formulas import km_to_metres, level_for_xp, metres_to_km, xp_for_distance


# =============================================================================
# Test distance units
# =============================================================================

class TestMetres:
    """Tests for km <-> whole metre conversion."""

    def test_rounds_to_nearest_metre(self):
        """Float noise in km values never leaks into stored metres."""
        assert km_to_metres(0.1) == 100
        assert km_to_metres(5.09) == 5090
        assert km_to_metres(1.2344) == 1234
        assert km_to_metres(1.2346) == 1235

    def test_back_to_km(self):
        assert metres_to_km(100) == 0.1
        assert metres_to_km(42195) == 42.195

    def test_sums_are_exact(self):
        """Adding then removing metres returns the original total."""
        total = km_to_metres(0.1) + km_to_metres(0.2) - km_to_metres(0.2)
        assert metres_to_km(total) == 0.1


# =============================================================================
# Test XP for distance
# =============================================================================

class TestXpForDistance:
    """Tests for xp_for_distance function."""

    def test_whole_kilometers(self):
        """10 XP per km."""
        assert xp_for_distance(5.0) == 50

    def test_fraction_is_floored(self):
        """Partial tenths of a km are dropped."""
        assert xp_for_distance(5.09) == 50
        assert xp_for_distance(5.19) == 51

    def test_zero_distance(self):
        """No distance, no XP."""
        assert xp_for_distance(0.0) == 0

    def test_negative_distance(self):
        """Negative distance never yields negative XP."""
        assert xp_for_distance(-3.0) == 0


# =============================================================================
# Test level for XP
# =============================================================================

class TestLevelForXp:
    """Tests for level_for_xp function."""

    @pytest.mark.parametrize("xp,level", [
        (0, 1),
        (150, 1),
        (999, 1),
        (1000, 2),
        (2500, 3),
        (10000, 11),
    ])
    def test_levels(self, xp, level):
        """level = floor(xp / 1000) + 1."""
        assert level_for_xp(xp) == level

    def test_negative_xp_is_level_one(self):
        """Corrupt negative XP still maps to level 1."""
        assert level_for_xp(-50) == 1
