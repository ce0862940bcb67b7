"""Relative Strength Index with Wilder's smoothing."""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from market_indicators.utils.logger import get_logger

from .base_indicator import BaseIndicator
from .divergence import detect_divergence
from .stats import average, round_to
from .validation import (
    CalculationError,
    EMPTY_INPUT,
    validate_data_length,
    validate_period,
    validate_prices_array,
)

logger = get_logger(__name__)

PRECISION = 2


@dataclass(frozen=True)
class RSILevels:
    """Overbought/oversold thresholds (inclusive)."""
    overbought: float = 70.0
    oversold: float = 30.0


@dataclass(frozen=True)
class RSIExtendedResult:
    rsi14: float
    rsi21: float
    signal14: str
    signal21: str


@dataclass(frozen=True)
class RSIComparison:
    """Side-by-side RSI values for several periods.

    Attributes:
        periods: Periods in the order requested
        values: RSI per period
        signals: Overbought/oversold/neutral per period
        trend: "converging", "diverging" or "stable"
        recommendation: strong_buy, buy, hold, sell or strong_sell
        average: Mean RSI across periods
    """
    periods: list[int]
    values: list[float]
    signals: list[str]
    trend: str
    recommendation: str
    average: float


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # No losses: pure uptrend reads 100, flat prices read neutral
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def _wilder_rsi(prices: np.ndarray, period: int) -> list[float]:
    """Unrounded RSI for every delta from index ``period`` on."""
    deltas = np.diff(prices)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(gains[:period].mean())
    avg_loss = float(losses[:period].mean())
    values = [_rsi_from_averages(avg_gain, avg_loss)]

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        values.append(_rsi_from_averages(avg_gain, avg_loss))

    return values


class RSICalculator(BaseIndicator):
    """Relative Strength Index calculator.

    RSI measures the speed and magnitude of price changes:
    - RSI >= 70: Overbought (potential reversal down)
    - RSI <= 30: Oversold (potential reversal up)
    - RSI 30-70: Neutral zone

    Uses Wilder-smoothed average gains vs average losses over the period.
    """

    CONVERGING_SPREAD = 5.0
    DIVERGING_SPREAD = 15.0
    STRONG_BUY_LEVEL = 20.0
    STRONG_SELL_LEVEL = 80.0

    def __init__(
        self,
        period: int = 14,
        levels: Optional[RSILevels] = None,
        momentum_threshold: float = 2.0,
    ):
        """Initialize RSI calculator.

        Args:
            period: Default number of periods (default: 14)
            levels: Overbought/oversold thresholds (default: 70/30)
            momentum_threshold: RSI points the latest value must move to
                count as positive/negative momentum (default: 2.0)
        """
        self.period = validate_period(period)
        self.levels = levels or RSILevels()
        self.momentum_threshold = momentum_threshold

    @property
    def name(self) -> str:
        return f"RSI_{self.period}"

    @property
    def params(self) -> dict:
        return {"period": self.period}

    def classify(self, value: float, prices: np.ndarray) -> str:
        return self.get_signal(value)

    def calculate(
        self,
        prices: Sequence[float],
        period: Optional[int] = None,
        warmup_period: Optional[int] = None,
    ) -> float:
        """Calculate the latest RSI value.

        Args:
            prices: Price series
            period: RSI period (default: calculator period)
            warmup_period: If given, only the trailing
                ``period + warmup_period + 1`` prices are used

        Returns:
            RSI in [0, 100], rounded to 2 decimals

        Raises:
            CalculationError: On invalid input or fewer than period + 1 prices
        """
        array = validate_prices_array(prices)
        period = validate_period(self.period if period is None else period)
        if warmup_period is not None:
            warmup_period = validate_period(warmup_period, "warmup_period")
        validate_data_length(len(array), period + 1, "price data")

        if warmup_period is not None:
            array = array[-(period + warmup_period + 1):]

        return round_to(_wilder_rsi(array, period)[-1], PRECISION)

    def calculate_array(
        self, prices: Sequence[float], period: Optional[int] = None
    ) -> list[float]:
        """RSI for every point once ``period`` deltas exist; empty otherwise."""
        array = validate_prices_array(prices)
        period = validate_period(self.period if period is None else period)
        if len(array) < period + 1:
            return []
        return [round_to(value, PRECISION) for value in _wilder_rsi(array, period)]

    def calculate_multiple_periods(
        self, prices: Sequence[float], periods: Sequence[int]
    ) -> dict[str, float]:
        """RSI per period; NaN where a period cannot be computed."""
        result = {}
        for period in periods:
            try:
                result[f"rsi{period}"] = self.calculate(prices, period)
            except CalculationError as e:
                logger.debug(f"RSI period {period} skipped: {e}")
                result[f"rsi{period}"] = math.nan
        return result

    def get_signal(self, value: float) -> str:
        return self.get_signal_with_levels(value, self.levels)

    @staticmethod
    def get_signal_with_levels(value: float, levels: RSILevels) -> str:
        """Classify an RSI value; boundary values count as extreme."""
        if value >= levels.overbought:
            return "overbought"
        if value <= levels.oversold:
            return "oversold"
        return "neutral"

    def get_momentum(self, prices: Sequence[float], period: Optional[int] = None) -> str:
        """Compare the latest RSI with the previous one.

        Returns:
            "positive", "negative", or "neutral" (small move or insufficient data)
        """
        values = self.calculate_array(prices, period)
        if len(values) < 2:
            return "neutral"

        change = values[-1] - values[-2]
        if change > self.momentum_threshold:
            return "positive"
        if change < -self.momentum_threshold:
            return "negative"
        return "neutral"

    @staticmethod
    def get_strength(value: float) -> str:
        """Distance from the 50 midpoint: >= 30 strong, >= 20 moderate, else weak."""
        distance = abs(value - 50)
        if distance >= 30:
            return "strong"
        if distance >= 20:
            return "moderate"
        return "weak"

    def detect_divergence(
        self,
        prices: Sequence[float],
        period: Optional[int] = None,
        lookback: int = 10,
    ) -> str:
        """Compare price and RSI extremes over the last ``lookback`` points.

        Returns:
            "bullish" (price falling, RSI rising), "bearish" (price rising,
            RSI falling), or "none"
        """
        array = validate_prices_array(prices)
        period = validate_period(self.period if period is None else period)
        lookback = validate_period(lookback, "lookback")
        if len(array) < period + lookback:
            return "none"

        rsi_values = self.calculate_array(array, period)
        return detect_divergence(array[-lookback:], rsi_values[-lookback:])

    def calculate_extended(
        self, prices: Sequence[float], levels: Optional[RSILevels] = None
    ) -> RSIExtendedResult:
        """RSI(14) and RSI(21) with their signals.

        Raises:
            CalculationError: If there is not enough data for RSI(21)
        """
        levels = levels or self.levels
        rsi14 = self.calculate(prices, 14)
        rsi21 = self.calculate(prices, 21)
        return RSIExtendedResult(
            rsi14=rsi14,
            rsi21=rsi21,
            signal14=self.get_signal_with_levels(rsi14, levels),
            signal21=self.get_signal_with_levels(rsi21, levels),
        )

    def compare_multiple_rsi(
        self, prices: Sequence[float], periods: Sequence[int]
    ) -> RSIComparison:
        """Compute RSI for several periods and summarise them.

        Raises:
            CalculationError: On an empty period list or any period that
                cannot be computed
        """
        if len(periods) == 0:
            raise CalculationError("Periods list cannot be empty", EMPTY_INPUT)

        values = [self.calculate(prices, period) for period in periods]
        signals = [self.get_signal(value) for value in values]
        mean = average(values)

        return RSIComparison(
            periods=list(periods),
            values=values,
            signals=signals,
            trend=self._spread_trend(values),
            recommendation=self._recommend(mean),
            average=round_to(mean, PRECISION),
        )

    def _spread_trend(self, values: list[float]) -> str:
        if len(values) < 2:
            return "stable"
        spread = max(values) - min(values)
        if spread < self.CONVERGING_SPREAD:
            return "converging"
        if spread > self.DIVERGING_SPREAD:
            return "diverging"
        return "stable"

    def _recommend(self, mean: float) -> str:
        if mean <= self.STRONG_BUY_LEVEL:
            return "strong_buy"
        if mean <= self.levels.oversold:
            return "buy"
        if mean >= self.STRONG_SELL_LEVEL:
            return "strong_sell"
        if mean >= self.levels.overbought:
            return "sell"
        return "hold"
