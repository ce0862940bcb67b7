"""Tests for divergence detection."""

import pytest
from market_indicators.indicators.divergence import (
    Extremes,
    FALLING,
    FLAT,
    RISING,
    detect_divergence,
    direction_of,
    find_extremes,
)


class TestExtremes:
    def test_first_min_and_max(self):
        assert find_extremes([3, 1, 2, 5, 4, 1, 5]) == Extremes(low_index=1, high_index=3)

    def test_direction(self):
        assert direction_of(Extremes(low_index=1, high_index=3)) == RISING
        assert direction_of(Extremes(low_index=3, high_index=1)) == FALLING
        assert direction_of(find_extremes([2, 2, 2])) == FLAT


class TestDetectDivergence:
    """Tests for the price/indicator decision table."""

    def test_bullish(self):
        """Test falling price with rising indicator."""
        assert detect_divergence([5, 4, 3, 2, 1], [1, 2, 3, 4, 5]) == "bullish"

    def test_bearish(self):
        """Test rising price with falling indicator."""
        assert detect_divergence([1, 2, 3, 4, 5], [5, 4, 3, 2, 1]) == "bearish"

    @pytest.mark.parametrize("price,indicator", [
        ([1, 2, 3], [1, 2, 3]),
        ([3, 2, 1], [3, 2, 1]),
        ([2, 2, 2], [1, 2, 3]),
        ([1, 2, 3], [4, 4, 4]),
    ])
    def test_none(self, price, indicator):
        assert detect_divergence(price, indicator) == "none"

    def test_short_windows(self):
        assert detect_divergence([1], [2]) == "none"
        assert detect_divergence([], []) == "none"
