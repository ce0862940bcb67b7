"""Moving average indicators: SMA/EMA values, trend and cross detection."""

import math
from typing import Optional, Sequence

import numpy as np

from market_indicators.utils.logger import get_logger

from .base_indicator import BaseIndicator
from .stats import (
    exponential_moving_average,
    last_n,
    round_to,
    simple_moving_average,
)
from .validation import (
    CalculationError,
    validate_data_length,
    validate_period,
    validate_prices_array,
)

logger = get_logger(__name__)

PRECISION = 3


class MovingAverageCalculator(BaseIndicator):
    """Simple/exponential moving average calculator.

    SMA smooths price data by averaging a fixed trailing window. Values are
    rounded to three decimals. The short/long comparison helpers classify
    trend direction and golden/dead crosses.
    """

    def __init__(self, period: int = 25):
        """Initialize MA calculator.

        Args:
            period: Default number of periods (default: 25)
        """
        self.period = validate_period(period)

    @property
    def name(self) -> str:
        return f"MA_{self.period}"

    @property
    def params(self) -> dict:
        return {"period": self.period}

    def calculate(self, prices: Sequence[float], period: Optional[int] = None) -> float:
        """Calculate the SMA of the trailing ``period`` prices.

        Raises:
            CalculationError: On invalid prices/period or insufficient data
        """
        array = validate_prices_array(prices)
        period = validate_period(self.period if period is None else period)
        validate_data_length(len(array), period, "price data")

        return round_to(float(np.mean(last_n(array, period))), PRECISION)

    def calculate_multiple_periods(
        self, prices: Sequence[float], periods: Sequence[int]
    ) -> dict[str, float]:
        """Calculate the SMA for each period; NaN where a period cannot be computed."""
        result = {}
        for period in periods:
            try:
                result[f"ma{period}"] = self.calculate(prices, period)
            except CalculationError as e:
                logger.debug(f"MA period {period} skipped: {e}")
                result[f"ma{period}"] = math.nan
        return result

    def calculate_ema(self, prices: Sequence[float], period: Optional[int] = None) -> float:
        """Calculate the latest EMA value.

        Raises:
            CalculationError: On invalid prices/period or insufficient data
        """
        array = validate_prices_array(prices)
        period = validate_period(self.period if period is None else period)
        validate_data_length(len(array), period, "price data")

        ema = exponential_moving_average(array, period)
        return round_to(ema[-1], PRECISION)

    def calculate_array(
        self, prices: Sequence[float], period: Optional[int] = None
    ) -> list[float]:
        """Full trailing SMA sequence; empty when data is insufficient."""
        period = self.period if period is None else period
        return [round_to(value, PRECISION) for value in simple_moving_average(prices, period)]

    def get_trend(
        self, prices: Sequence[float], short_period: int, long_period: int
    ) -> str:
        """Compare the latest short SMA against the latest long SMA.

        Returns:
            "upward", "downward", or "sideways" (equal averages or insufficient data)
        """
        short_ma = self.calculate_array(prices, short_period)
        long_ma = self.calculate_array(prices, long_period)
        if not short_ma or not long_ma:
            return "sideways"

        if short_ma[-1] > long_ma[-1]:
            return "upward"
        if short_ma[-1] < long_ma[-1]:
            return "downward"
        return "sideways"

    def detect_cross(
        self, prices: Sequence[float], short_period: int, long_period: int
    ) -> str:
        """Detect a golden/dead cross over the two most recent points.

        Returns:
            "golden" (short crosses above long), "dead" (short crosses below
            long), or "none"
        """
        short_ma = self.calculate_array(prices, short_period)
        long_ma = self.calculate_array(prices, long_period)
        if len(short_ma) < 2 or len(long_ma) < 2:
            return "none"

        short_prev, short_curr = short_ma[-2], short_ma[-1]
        long_prev, long_curr = long_ma[-2], long_ma[-1]

        if short_prev <= long_prev and short_curr > long_curr:
            return "golden"
        if short_prev >= long_prev and short_curr < long_curr:
            return "dead"
        return "none"
