"""Moving-average deviation: how far the price sits from its moving average.

deviation = (current price - moving average) / moving average * 100
"""

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Optional, Sequence

import numpy as np

from market_indicators.utils.logger import get_logger

from .base_indicator import BaseIndicator
from .stats import average, last_n
from .validation import (
    CalculationError,
    CALCULATION_FAILED,
    EMPTY_INPUT,
    INSUFFICIENT_DATA,
    INVALID_PARAMETER,
    validate_data_length,
    validate_period,
    validate_prices_array,
)

logger = get_logger(__name__)

STRONG_DEVIATION = 10.0
DEVIATION = 5.0
MAJORITY_SHARE = 0.6
NEUTRAL_MEDIUM_SHARE = 0.5


@dataclass(frozen=True)
class DeviationResult:
    period: int
    current_price: float
    moving_average: float
    deviation: float
    deviation_direction: str

    def to_dict(self) -> dict:
        """camelCase view, as exchanged with report consumers."""
        return {
            "period": self.period,
            "currentPrice": self.current_price,
            "movingAverage": self.moving_average,
            "deviation": self.deviation,
            "deviationDirection": self.deviation_direction,
        }


@dataclass(frozen=True)
class OverallDeviationSignal:
    signal: str
    confidence: str
    details: str


@dataclass(frozen=True)
class DeviationTrend:
    trend: str
    deviation_history: list[float]
    average_deviation: float
    slope: float

    def to_dict(self) -> dict:
        return asdict(self)


class MovingAverageDeviationCalculator(BaseIndicator):
    """Moving-average deviation rate.

    Signals:
    - deviation >= +10%: strong_above
    - deviation >= +5%: above
    - deviation <= -10%: strong_below
    - deviation <= -5%: below
    - otherwise: neutral
    """

    def __init__(self, periods: Sequence[int] = (25, 50, 200), trend_threshold: float = 0.5):
        """Initialize deviation calculator.

        Args:
            periods: Moving-average periods; the first is the default for
                single-period calls (default: 25, 50, 200)
            trend_threshold: Regression slope (percentage points per day)
                beyond which a deviation history counts as trending
        """
        if len(periods) == 0:
            raise CalculationError("Periods list cannot be empty", EMPTY_INPUT)
        self.periods = [validate_period(p) for p in periods]
        self.period = self.periods[0]
        self.trend_threshold = trend_threshold

    @property
    def name(self) -> str:
        return f"DEV_{self.period}"

    @property
    def params(self) -> dict:
        return {"period": self.period}

    def classify(self, value: DeviationResult, prices: np.ndarray) -> str:
        return self.get_deviation_signal(value.deviation)

    def calculate(self, prices: Sequence[float], period: Optional[int] = None) -> DeviationResult:
        """Deviation of the latest price from its ``period`` moving average.

        Raises:
            CalculationError: On empty/invalid prices, a period outside
                1..len(prices), or a zero moving average
        """
        array = validate_prices_array(prices)
        period = self.period if period is None else period
        if isinstance(period, (int, np.integer)) and not isinstance(period, bool) \
                and not 1 <= period <= len(array):
            raise CalculationError(
                f"Invalid period: {period} (data points: {len(array)})",
                INVALID_PARAMETER,
                value=period,
            )
        period = validate_period(period)
        validate_data_length(len(array), period, "price data")

        current_price = float(array[-1])
        # Averaging offsets from the current price keeps a flat window at exactly zero
        offset = average(np.asarray(last_n(array, period)) - current_price)
        moving_average = current_price + offset
        if moving_average == 0:
            raise CalculationError(
                "Moving average is zero; deviation is undefined", CALCULATION_FAILED
            )

        deviation = 0.0 if offset == 0 else -offset / moving_average * 100
        return DeviationResult(
            period=period,
            current_price=current_price,
            moving_average=moving_average,
            deviation=deviation,
            deviation_direction="positive" if deviation >= 0 else "negative",
        )

    def calculate_multiple(
        self, prices: Sequence[float], periods: Optional[Sequence[int]] = None
    ) -> list[DeviationResult]:
        """Deviation for every period (default: the configured periods).

        Raises:
            CalculationError: On an empty period list, or naming the first
                period that fails
        """
        periods = self.periods if periods is None else periods
        if len(periods) == 0:
            raise CalculationError("Periods list cannot be empty", EMPTY_INPUT)

        results = []
        for period in periods:
            try:
                results.append(self.calculate(prices, period))
            except CalculationError as e:
                raise CalculationError(
                    f"Calculation failed for period {period}: {e.message}",
                    e.code,
                    value=period,
                ) from e
        return results

    @staticmethod
    def get_deviation_signal(deviation: float) -> str:
        if deviation >= STRONG_DEVIATION:
            return "strong_above"
        if deviation >= DEVIATION:
            return "above"
        if deviation <= -STRONG_DEVIATION:
            return "strong_below"
        if deviation <= -DEVIATION:
            return "below"
        return "neutral"

    def get_overall_signal(self, results: Sequence[DeviationResult]) -> OverallDeviationSignal:
        """Combine per-period deviation signals into one vote.

        A strong signal held by at least 60% of the periods wins with high
        confidence; a direction (above or below, strong included) held by
        60% wins with medium confidence; anything else is neutral, medium
        when at least half the periods are neutral and low otherwise.

        Raises:
            CalculationError: If results is empty
        """
        if len(results) == 0:
            raise CalculationError(
                "Cannot classify empty results: deviation results are empty", EMPTY_INPUT
            )

        signals = [(r.period, r.deviation, self.get_deviation_signal(r.deviation)) for r in results]
        counts = Counter(signal for _, _, signal in signals)
        needed = len(signals) * MAJORITY_SHARE

        if counts["strong_above"] >= needed:
            overall, confidence = "strong_above", "high"
        elif counts["strong_below"] >= needed:
            overall, confidence = "strong_below", "high"
        elif counts["above"] + counts["strong_above"] >= needed:
            overall, confidence = "above", "medium"
        elif counts["below"] + counts["strong_below"] >= needed:
            overall, confidence = "below", "medium"
        else:
            overall = "neutral"
            confidence = "medium" if counts["neutral"] >= len(signals) * NEUTRAL_MEDIUM_SHARE else "low"

        details = ", ".join(
            f"{period} days: {deviation:.1f}% ({signal})" for period, deviation, signal in signals
        )
        return OverallDeviationSignal(signal=overall, confidence=confidence, details=details)

    def analyze_deviation_trend(
        self,
        price_histories: Sequence[Sequence[float]],
        period: Optional[int] = None,
        lookback_days: int = 5,
    ) -> DeviationTrend:
        """Fit a least-squares line through recent daily deviations.

        Args:
            price_histories: One price series per day, oldest day first
            period: Moving-average period
            lookback_days: Number of most recent days to analyse

        Raises:
            CalculationError: With fewer than ``lookback_days`` snapshots
        """
        period = self.period if period is None else period
        lookback_days = validate_period(lookback_days, "lookback_days")
        if len(price_histories) < lookback_days:
            raise CalculationError(
                f"Trend analysis requires at least {lookback_days} days of price history, "
                f"got {len(price_histories)}",
                INSUFFICIENT_DATA,
            )

        history = []
        for day, prices in enumerate(price_histories[-lookback_days:]):
            try:
                history.append(self.calculate(prices, period).deviation)
            except CalculationError as e:
                logger.warning(f"Deviation for day {day} counted as 0: {e}")
                history.append(0.0)

        slope = 0.0
        if len(history) >= 2:
            slope = float(np.polyfit(np.arange(len(history)), history, 1)[0])

        if slope > self.trend_threshold:
            trend = "increasing"
        elif slope < -self.trend_threshold:
            trend = "decreasing"
        else:
            trend = "stable"

        return DeviationTrend(
            trend=trend,
            deviation_history=history,
            average_deviation=average(history),
            slope=slope,
        )
