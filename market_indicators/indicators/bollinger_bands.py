"""Bollinger Bands volatility indicator."""

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .base_indicator import BaseIndicator
from .stats import average, last_n, round_to, standard_deviation
from .validation import (
    CalculationError,
    INVALID_PARAMETER,
    validate_data_length,
    validate_period,
    validate_prices_array,
)

SQUEEZE_BANDWIDTH = 0.05


@dataclass(frozen=True)
class BollingerBandsResult:
    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float


@dataclass(frozen=True)
class BollingerBandsSeries:
    upper: list[float] = field(default_factory=list)
    middle: list[float] = field(default_factory=list)
    lower: list[float] = field(default_factory=list)
    bandwidth: list[float] = field(default_factory=list)
    percent_b: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.middle)


def _bands(window: np.ndarray, price: float, num_std: float) -> BollingerBandsResult:
    middle = average(window)
    std = standard_deviation(window)
    upper = middle + num_std * std
    lower = middle - num_std * std

    bandwidth = round_to((upper - lower) / middle, 4) if middle > 0 else 0.0
    # Zero-width bands put the price in the middle
    percent_b = round_to((price - lower) / (upper - lower), 4) if upper > lower else 0.5

    return BollingerBandsResult(
        upper=round_to(upper, 3),
        middle=round_to(middle, 3),
        lower=round_to(lower, 3),
        bandwidth=bandwidth,
        percent_b=percent_b,
    )


class BollingerBandsCalculator(BaseIndicator):
    """Bollinger Bands indicator.

    Middle band is the SMA of the window; upper/lower bands sit ``num_std``
    population standard deviations away:
    - Price at/below lower band: potential buy
    - Price at/above upper band: potential sell
    - Narrow bandwidth: volatility squeeze
    """

    def __init__(self, period: int = 20, num_std: float = 2.0):
        """Initialize Bollinger Bands calculator.

        Args:
            period: Window length (default: 20)
            num_std: Band width in standard deviations (default: 2.0)
        """
        self.period = validate_period(period)
        self.num_std = self._check_num_std(num_std)

    @staticmethod
    def _check_num_std(num_std: float) -> float:
        if not np.isfinite(num_std) or num_std <= 0:
            raise CalculationError(
                f"num_std must be a positive number, got: {num_std}", INVALID_PARAMETER
            )
        return float(num_std)

    @property
    def name(self) -> str:
        return f"BB_{self.period}_{self.num_std}"

    @property
    def params(self) -> dict:
        return {"period": self.period, "num_std": self.num_std}

    def classify(self, value: BollingerBandsResult, prices: np.ndarray) -> str:
        return self.get_signal(value, float(prices[-1]))

    def calculate(
        self,
        prices: Sequence[float],
        period: Optional[int] = None,
        num_std: Optional[float] = None,
    ) -> BollingerBandsResult:
        """Bands for the trailing window.

        Raises:
            CalculationError: On invalid input or insufficient data
        """
        array = validate_prices_array(prices)
        period = validate_period(self.period if period is None else period)
        num_std = self._check_num_std(self.num_std if num_std is None else num_std)
        validate_data_length(len(array), period, "price data")

        window = np.asarray(last_n(array, period))
        return _bands(window, float(array[-1]), num_std)

    def calculate_array(
        self,
        prices: Sequence[float],
        period: Optional[int] = None,
        num_std: Optional[float] = None,
    ) -> BollingerBandsSeries:
        """Bands for every complete window; empty when data is insufficient."""
        array = validate_prices_array(prices)
        period = validate_period(self.period if period is None else period)
        num_std = self._check_num_std(self.num_std if num_std is None else num_std)
        if len(array) < period:
            return BollingerBandsSeries()

        results = [
            _bands(window, float(price), num_std)
            for window, price in zip(sliding_window_view(array, period), array[period - 1:])
        ]
        return BollingerBandsSeries(
            upper=[r.upper for r in results],
            middle=[r.middle for r in results],
            lower=[r.lower for r in results],
            bandwidth=[r.bandwidth for r in results],
            percent_b=[r.percent_b for r in results],
        )

    @staticmethod
    def get_signal(result: BollingerBandsResult, current_price: float) -> str:
        """Buy at/below the lower band, sell at/above the upper; zero-width bands are neutral."""
        if result.upper <= result.lower:
            return "neutral"
        if current_price <= result.lower or result.percent_b <= 0:
            return "buy"
        if current_price >= result.upper or result.percent_b >= 1:
            return "sell"
        return "neutral"

    @staticmethod
    def get_volatility_state(
        bandwidth: float, threshold_high: float = 0.1, threshold_low: float = 0.03
    ) -> str:
        if bandwidth >= threshold_high:
            return "high"
        if bandwidth <= threshold_low:
            return "low"
        return "normal"

    def detect_squeeze(
        self, prices: Sequence[float], period: Optional[int] = None, lookback: int = 5
    ) -> bool:
        """True when the mean of the last ``lookback`` bandwidths is below 5%."""
        series = self.calculate_array(prices, period)
        if len(series) < lookback:
            return False
        return average(series.bandwidth[-lookback:]) < SQUEEZE_BANDWIDTH
