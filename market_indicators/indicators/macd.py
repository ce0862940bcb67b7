"""Moving Average Convergence Divergence."""

from dataclasses import asdict, dataclass, field
from typing import Optional, Sequence

import numpy as np

from .base_indicator import BaseIndicator
from .divergence import detect_divergence
from .stats import exponential_moving_average, round_to
from .validation import (
    validate_data_length,
    validate_period,
    validate_period_relationship,
    validate_prices_array,
)

PRECISION = 3


@dataclass(frozen=True)
class MACDResult:
    """Latest MACD values; histogram == round(macd - signal, 3)."""
    macd: float
    signal: float
    histogram: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MACDSeries:
    """Full MACD, signal and histogram lines (oldest first)."""
    macd: list[float] = field(default_factory=list)
    signal: list[float] = field(default_factory=list)
    histogram: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.macd)


@dataclass(frozen=True)
class MACDBands:
    """Magnitude bands for momentum and strength classification."""
    momentum_histogram: float = 0.5
    strong_macd: float = 2.0
    strong_histogram: float = 1.0
    moderate_macd: float = 1.0
    moderate_histogram: float = 0.5


class MACDCalculator(BaseIndicator):
    """Moving Average Convergence Divergence indicator.

    MACD shows the relationship between two EMAs and includes:
    - MACD line: Difference between fast and slow EMAs
    - Signal line: EMA of MACD line
    - Histogram: Difference between MACD and signal

    Used for trend direction, momentum, and divergence signals.
    """

    def __init__(
        self,
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9,
        bands: Optional[MACDBands] = None,
    ):
        """Initialize MACD calculator.

        Args:
            fast_period: Fast EMA period (default: 12)
            slow_period: Slow EMA period (default: 26)
            signal_period: Signal line EMA period (default: 9)
            bands: Momentum/strength thresholds
        """
        self.fast_period, self.slow_period = validate_period_relationship(
            fast_period, slow_period
        )
        self.signal_period = validate_period(signal_period, "signal_period")
        self.bands = bands or MACDBands()

    @property
    def name(self) -> str:
        return f"MACD_{self.fast_period}_{self.slow_period}_{self.signal_period}"

    @property
    def params(self) -> dict:
        return {
            "fast_period": self.fast_period,
            "slow_period": self.slow_period,
            "signal_period": self.signal_period,
        }

    def classify(self, value: MACDResult, prices: np.ndarray) -> str:
        return self.get_signal(value)

    def _resolve(self, fast_period, slow_period, signal_period) -> tuple[int, int, int]:
        fast, slow = validate_period_relationship(
            self.fast_period if fast_period is None else fast_period,
            self.slow_period if slow_period is None else slow_period,
        )
        signal = validate_period(
            self.signal_period if signal_period is None else signal_period,
            "signal_period",
        )
        return fast, slow, signal

    @staticmethod
    def _lines(prices: np.ndarray, fast: int, slow: int, signal: int):
        """Unrounded MACD and signal lines, starting where the slow window fills."""
        fast_ema = np.asarray(exponential_moving_average(prices, fast))
        slow_ema = np.asarray(exponential_moving_average(prices, slow))
        macd_line = (fast_ema - slow_ema)[slow - 1:]
        signal_line = np.asarray(exponential_moving_average(macd_line, signal))
        return macd_line, signal_line

    def calculate(
        self,
        prices: Sequence[float],
        fast_period: Optional[int] = None,
        slow_period: Optional[int] = None,
        signal_period: Optional[int] = None,
    ) -> MACDResult:
        """Calculate the latest MACD, signal and histogram.

        Raises:
            CalculationError: On invalid input, slow <= fast, or fewer than
                slow + signal prices
        """
        array = validate_prices_array(prices)
        fast, slow, signal = self._resolve(fast_period, slow_period, signal_period)
        validate_data_length(len(array), slow + signal, "price data")

        macd_line, signal_line = self._lines(array, fast, slow, signal)
        macd = round_to(float(macd_line[-1]), PRECISION)
        signal_value = round_to(float(signal_line[-1]), PRECISION)
        return MACDResult(
            macd=macd,
            signal=signal_value,
            histogram=round_to(macd - signal_value, PRECISION),
        )

    def calculate_array(
        self,
        prices: Sequence[float],
        fast_period: Optional[int] = None,
        slow_period: Optional[int] = None,
        signal_period: Optional[int] = None,
    ) -> MACDSeries:
        """Full MACD lines; empty lines when data is insufficient."""
        array = validate_prices_array(prices)
        fast, slow, signal = self._resolve(fast_period, slow_period, signal_period)
        if len(array) < slow + signal:
            return MACDSeries()

        macd_line, signal_line = self._lines(array, fast, slow, signal)
        macd = [round_to(float(v), PRECISION) for v in macd_line]
        signal_values = [round_to(float(v), PRECISION) for v in signal_line]
        return MACDSeries(
            macd=macd,
            signal=signal_values,
            histogram=[round_to(m - s, PRECISION) for m, s in zip(macd, signal_values)],
        )

    @staticmethod
    def get_signal(result: MACDResult) -> str:
        """Bullish when MACD is above signal with a positive histogram, and vice versa."""
        if result.histogram > 0 and result.macd > result.signal:
            return "bullish"
        if result.histogram < 0 and result.macd < result.signal:
            return "bearish"
        return "neutral"

    def detect_cross(
        self,
        prices: Sequence[float],
        fast_period: Optional[int] = None,
        slow_period: Optional[int] = None,
        signal_period: Optional[int] = None,
    ) -> str:
        """Detect MACD/signal crossovers over the two most recent points.

        Returns:
            "bullish_cross", "bearish_cross", or "none"
        """
        series = self.calculate_array(prices, fast_period, slow_period, signal_period)
        if len(series) < 2:
            return "none"

        macd_prev, macd_curr = series.macd[-2], series.macd[-1]
        signal_prev, signal_curr = series.signal[-2], series.signal[-1]

        if macd_prev <= signal_prev and macd_curr > signal_curr:
            return "bullish_cross"
        if macd_prev >= signal_prev and macd_curr < signal_curr:
            return "bearish_cross"
        return "none"

    def detect_divergence(
        self,
        prices: Sequence[float],
        fast_period: Optional[int] = None,
        slow_period: Optional[int] = None,
        signal_period: Optional[int] = None,
        lookback: int = 10,
    ) -> str:
        """Compare price and MACD-line extremes over the last ``lookback`` points.

        Returns:
            "bullish", "bearish", or "none"
        """
        array = validate_prices_array(prices)
        fast, slow, signal = self._resolve(fast_period, slow_period, signal_period)
        lookback = validate_period(lookback, "lookback")
        if len(array) < slow + signal + lookback:
            return "none"

        series = self.calculate_array(array, fast, slow, signal)
        return detect_divergence(array[-lookback:], series.macd[-lookback:])

    def get_momentum(self, result: MACDResult) -> str:
        """Histogram beyond +/- the momentum band: accelerating/decelerating."""
        if result.histogram > self.bands.momentum_histogram:
            return "accelerating"
        if result.histogram < -self.bands.momentum_histogram:
            return "decelerating"
        return "neutral"

    def get_strength(self, result: MACDResult) -> str:
        macd_abs = abs(result.macd)
        histogram_abs = abs(result.histogram)

        if macd_abs > self.bands.strong_macd and histogram_abs > self.bands.strong_histogram:
            return "strong"
        if macd_abs > self.bands.moderate_macd or histogram_abs > self.bands.moderate_histogram:
            return "moderate"
        return "weak"
