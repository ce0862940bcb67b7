"""Technical indicator calculation module.

Provides technical analysis indicators for price series:
- Trend indicators: MA, EMA, MACD, moving-average deviation
- Momentum indicators: RSI
- Volatility indicators: Bollinger Bands
- Unified calculator for batch processing
"""

from .validation import CalculationError
from .base_indicator import BaseIndicator, IndicatorResult
from .moving_average import MovingAverageCalculator
from .rsi import RSICalculator, RSIComparison, RSIExtendedResult, RSILevels
from .macd import MACDBands, MACDCalculator, MACDResult, MACDSeries
from .deviation import (
    DeviationResult,
    DeviationTrend,
    MovingAverageDeviationCalculator,
    OverallDeviationSignal,
)
from .bollinger_bands import (
    BollingerBandsCalculator,
    BollingerBandsResult,
    BollingerBandsSeries,
)
from .indicator_calculator import IndicatorCalculator, IndicatorConfig

__all__ = [
    # Base
    "BaseIndicator",
    "IndicatorResult",
    "CalculationError",
    # Trend
    "MovingAverageCalculator",
    "MACDCalculator",
    "MACDResult",
    "MACDSeries",
    "MACDBands",
    "MovingAverageDeviationCalculator",
    "DeviationResult",
    "OverallDeviationSignal",
    "DeviationTrend",
    # Momentum
    "RSICalculator",
    "RSILevels",
    "RSIExtendedResult",
    "RSIComparison",
    # Volatility
    "BollingerBandsCalculator",
    "BollingerBandsResult",
    "BollingerBandsSeries",
    # Calculator
    "IndicatorCalculator",
    "IndicatorConfig",
]
