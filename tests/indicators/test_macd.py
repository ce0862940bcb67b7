"""Tests for the MACD calculator."""

import pytest
import pandas as pd
import numpy as np
from market_indicators.indicators.macd import MACDBands, MACDCalculator, MACDResult
from market_indicators.indicators.stats import round_to
from market_indicators.indicators.validation import CalculationError


@pytest.fixture
def sample_prices():
    """Create sample price data for testing."""
    np.random.seed(42)
    n = 100
    return (100 + np.cumsum(np.random.randn(n) * 2)).tolist()


FALL_THEN_JUMP = [10, 9, 8, 7, 6, 5, 10]
RISE_THEN_DROP = [10, 11, 12, 13, 14, 15, 10]


class TestMACDCalculation:
    """Tests for MACD, signal and histogram values."""

    def test_name(self):
        assert MACDCalculator().name == "MACD_12_26_9"

    def test_slow_must_exceed_fast(self):
        with pytest.raises(CalculationError, match="Slow period"):
            MACDCalculator(fast_period=26, slow_period=12)
        with pytest.raises(CalculationError, match="Slow period"):
            MACDCalculator().calculate(list(range(100)), 12, 12)

    def test_invalid_signal_period(self):
        with pytest.raises(CalculationError, match="signal_period"):
            MACDCalculator(signal_period=0)

    def test_histogram_invariant(self, sample_prices):
        result = MACDCalculator().calculate(sample_prices)
        assert result.histogram == round_to(result.macd - result.signal, 3)

    def test_matches_pandas_ewm(self, sample_prices):
        """Test MACD line equals the difference of first-value-seeded EMAs."""
        close = pd.Series(sample_prices)
        expected = (close.ewm(span=12, adjust=False).mean()
                    - close.ewm(span=26, adjust=False).mean()).iloc[-1]
        assert MACDCalculator().calculate(sample_prices).macd == pytest.approx(expected, abs=5e-4)

    def test_minimum_length(self):
        calc = MACDCalculator()
        calc.calculate(list(range(1, 36)))
        with pytest.raises(CalculationError, match="need 35, got 34"):
            calc.calculate(list(range(1, 35)))

    def test_constant_prices(self):
        result = MACDCalculator().calculate([50] * 40)
        assert result == MACDResult(macd=0.0, signal=0.0, histogram=0.0)
        assert MACDCalculator.get_signal(result) == "neutral"

    def test_rising_prices_bullish(self):
        result = MACDCalculator().calculate([100 + i * i * 0.1 for i in range(60)])
        assert result.macd > 0
        assert MACDCalculator.get_signal(result) == "bullish"

    def test_callable_attaches_signal(self):
        result = MACDCalculator()([100 + i * i * 0.1 for i in range(60)])
        assert result.name == "MACD_12_26_9"
        assert result.signal == "bullish"
        assert result.params == {"fast_period": 12, "slow_period": 26, "signal_period": 9}

    def test_to_dict(self):
        assert MACDResult(1.0, 0.5, 0.5).to_dict() == {"macd": 1.0, "signal": 0.5, "histogram": 0.5}


class TestMACDArray:
    def test_lengths(self, sample_prices):
        series = MACDCalculator().calculate_array(sample_prices)
        assert len(series) == 75
        assert len(series.signal) == len(series.histogram) == 75

    def test_histogram_invariant_elementwise(self, sample_prices):
        series = MACDCalculator().calculate_array(sample_prices)
        for m, s, h in zip(series.macd, series.signal, series.histogram):
            assert h == round_to(m - s, 3)

    def test_last_point_matches_calculate(self, sample_prices):
        calc = MACDCalculator()
        series = calc.calculate_array(sample_prices)
        result = calc.calculate(sample_prices)
        assert (series.macd[-1], series.signal[-1], series.histogram[-1]) == (
            result.macd, result.signal, result.histogram
        )

    def test_insufficient_is_empty(self):
        series = MACDCalculator().calculate_array(list(range(20)))
        assert len(series) == 0
        assert series.signal == [] and series.histogram == []

    def test_invalid_params_raise(self):
        with pytest.raises(CalculationError):
            MACDCalculator().calculate_array(list(range(20)), 26, 12)


class TestMACDSignals:
    """Tests for MACD classification helpers."""

    def test_get_signal(self):
        assert MACDCalculator.get_signal(MACDResult(1.0, 0.5, 0.5)) == "bullish"
        assert MACDCalculator.get_signal(MACDResult(0.5, 1.0, -0.5)) == "bearish"
        assert MACDCalculator.get_signal(MACDResult(0.5, 0.5, 0.0)) == "neutral"

    def test_bullish_cross(self):
        calc = MACDCalculator(fast_period=2, slow_period=3, signal_period=2)
        assert calc.detect_cross(FALL_THEN_JUMP) == "bullish_cross"

    def test_bearish_cross(self):
        calc = MACDCalculator(fast_period=2, slow_period=3, signal_period=2)
        assert calc.detect_cross(RISE_THEN_DROP) == "bearish_cross"

    def test_no_cross(self):
        calc = MACDCalculator(fast_period=2, slow_period=3, signal_period=2)
        assert calc.detect_cross([10] * 10) == "none"
        assert calc.detect_cross([1, 2, 3]) == "none"

    def test_divergence_insufficient_data(self):
        assert MACDCalculator().detect_divergence(list(range(40))) == "none"

    def test_divergence_label(self, sample_prices):
        assert MACDCalculator().detect_divergence(sample_prices) in ("bullish", "bearish", "none")

    @pytest.mark.parametrize("histogram,expected", [
        (0.6, "accelerating"),
        (-0.6, "decelerating"),
        (0.5, "neutral"),
        (0.0, "neutral"),
    ])
    def test_momentum(self, histogram, expected):
        assert MACDCalculator().get_momentum(MACDResult(1.0, 1.0 - histogram, histogram)) == expected

    @pytest.mark.parametrize("result,expected", [
        (MACDResult(2.5, 1.0, 1.5), "strong"),
        (MACDResult(-2.5, -1.0, -1.5), "strong"),
        (MACDResult(2.5, 2.2, 0.3), "moderate"),
        (MACDResult(0.3, -0.3, 0.6), "moderate"),
        (MACDResult(0.5, 0.4, 0.1), "weak"),
    ])
    def test_strength(self, result, expected):
        assert MACDCalculator().get_strength(result) == expected

    def test_custom_bands(self):
        calc = MACDCalculator(bands=MACDBands(momentum_histogram=0.1))
        assert calc.get_momentum(MACDResult(1.0, 0.8, 0.2)) == "accelerating"
