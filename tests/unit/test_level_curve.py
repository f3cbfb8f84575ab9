"""Unit tests for progression/level_curve.py."""
import pytest

from progression.level_curve import (
    level_from_xp,
    level_progress,
    total_xp_for_level,
    xp_required_for_level,
)


# ---------------------------------------------------------------------------
# xp_required_for_level
# ---------------------------------------------------------------------------

class TestXpRequiredForLevel:

    def test_level_one_costs_100(self):
        assert xp_required_for_level(1) == 100

    def test_level_two_is_floored(self):
        """100 * 2 ** 1.15 = 221.9..., floored."""
        assert xp_required_for_level(2) == 221

    def test_strictly_increasing(self):
        costs = [xp_required_for_level(level) for level in range(1, 60)]
        assert all(later > earlier for earlier, later in zip(costs, costs[1:]))

    @pytest.mark.parametrize("level", [0, -1])
    def test_rejects_levels_below_one(self, level):
        with pytest.raises(ValueError):
            xp_required_for_level(level)


# ---------------------------------------------------------------------------
# level_from_xp
# ---------------------------------------------------------------------------

class TestLevelFromXp:

    def test_zero_xp_is_level_one(self):
        assert level_from_xp(0) == 1

    def test_just_below_threshold(self):
        assert level_from_xp(99) == 1

    def test_exact_threshold_levels_up(self):
        assert level_from_xp(100) == 2

    def test_twenty_xp_is_level_one(self):
        assert level_from_xp(20) == 1

    def test_third_level_boundary(self):
        boundary = xp_required_for_level(1) + xp_required_for_level(2)
        assert level_from_xp(boundary - 1) == 2
        assert level_from_xp(boundary) == 3

    def test_monotonic_in_xp(self):
        levels = [level_from_xp(xp) for xp in range(0, 5000, 7)]
        assert levels == sorted(levels)

    def test_rejects_negative_xp(self):
        with pytest.raises(ValueError):
            level_from_xp(-1)


# ---------------------------------------------------------------------------
# total_xp_for_level / level_progress
# ---------------------------------------------------------------------------

class TestTotalXpForLevel:

    def test_level_one_starts_at_zero(self):
        assert total_xp_for_level(1) == 0

    def test_level_two_starts_at_100(self):
        assert total_xp_for_level(2) == 100

    @pytest.mark.parametrize("level", [1, 2, 5, 12, 30])
    def test_inverse_of_level_from_xp(self, level):
        assert level_from_xp(total_xp_for_level(level)) == level


class TestLevelProgress:

    def test_fresh_user(self):
        assert level_progress(0) == {"level": 1, "xp_into_level": 0, "xp_for_next_level": 100}

    def test_inside_second_level(self):
        result = level_progress(150)
        assert result["level"] == 2
        assert result["xp_into_level"] == 50
        assert result["xp_for_next_level"] == 221
