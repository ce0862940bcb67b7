"""Unified indicator calculator for batch processing."""

import math
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from market_indicators.utils.config import Config
from market_indicators.utils.logger import get_logger

from .bollinger_bands import BollingerBandsCalculator
from .deviation import MovingAverageDeviationCalculator
from .macd import MACDCalculator
from .moving_average import MovingAverageCalculator
from .rsi import RSICalculator
from .stats import exponential_moving_average, round_to
from .validation import (
    CalculationError,
    INVALID_PARAMETER,
    validate_prices_array,
)

logger = get_logger(__name__)


@dataclass
class IndicatorConfig:
    """Configuration for indicator calculation.

    All period/param fields are lists to support multiple parameter sets.
    E.g., rsi_periods=[14, 21] will produce both RSI_14 and RSI_21 columns.
    """
    ma_periods: list[int] = field(default_factory=lambda: [25, 50, 200])
    ema_periods: list[int] = field(default_factory=lambda: [12, 26])
    rsi_periods: list[int] = field(default_factory=lambda: [14, 21])
    macd_params_list: list[tuple[int, int, int]] = field(
        default_factory=lambda: [(12, 26, 9)]
    )
    deviation_periods: list[int] = field(default_factory=lambda: [25, 50, 200])
    bollinger_params_list: list[tuple[int, float]] = field(
        default_factory=lambda: [(20, 2.0)]
    )

    @staticmethod
    def from_config(config: Config) -> "IndicatorConfig":
        """Build config from the ``indicators`` section of a YAML config.

        Missing keys keep their defaults.
        """
        defaults = IndicatorConfig()
        return IndicatorConfig(
            ma_periods=list(config.get("indicators.ma_periods", defaults.ma_periods)),
            ema_periods=list(config.get("indicators.ema_periods", defaults.ema_periods)),
            rsi_periods=list(config.get("indicators.rsi_periods", defaults.rsi_periods)),
            macd_params_list=[
                tuple(params)
                for params in config.get("indicators.macd_params_list", defaults.macd_params_list)
            ],
            deviation_periods=list(
                config.get("indicators.deviation_periods", defaults.deviation_periods)
            ),
            bollinger_params_list=[
                (params[0], float(params[1]))
                for params in config.get(
                    "indicators.bollinger_params_list", defaults.bollinger_params_list
                )
            ],
        )


class IndicatorCalculator:
    """Unified calculator for all technical indicators.

    Calculates indicators with parameterized names:
      MA_25, EMA_12, RSI_14, MACD_12_26_9, MACD_hist_12_26_9, DEV_25,
      BB_upper_20_2.0, etc.

    Calculators are built up front, so invalid periods in the config raise
    at construction. Afterwards only insufficient data is tolerated: those
    indicators come back as NaN.
    """

    AVAILABLE_INDICATORS = ["ma", "ema", "rsi", "macd", "deviation", "bollinger"]

    def __init__(self, config: Optional[IndicatorConfig] = None):
        self.config = config or IndicatorConfig()
        self._ma = [MovingAverageCalculator(period=p) for p in self.config.ma_periods]
        self._ema = [MovingAverageCalculator(period=p) for p in self.config.ema_periods]
        self._rsi = [RSICalculator(period=p) for p in self.config.rsi_periods]
        self._macd = [
            MACDCalculator(fast_period=fast, slow_period=slow, signal_period=signal)
            for fast, slow, signal in self.config.macd_params_list
        ]
        self._deviation = [
            MovingAverageDeviationCalculator(periods=[p]) for p in self.config.deviation_periods
        ]
        self._bollinger = [
            BollingerBandsCalculator(period=period, num_std=num_std)
            for period, num_std in self.config.bollinger_params_list
        ]

    def get_indicator_names(self) -> list[str]:
        return self.AVAILABLE_INDICATORS.copy()

    def get_column_names(self, indicators: Optional[Sequence[str]] = None) -> list[str]:
        """Names of every value the configured suite produces, in output order."""
        return list(self.calculate_frame([0.0], indicators).columns)

    def _check_indicators(self, indicators: Optional[Sequence[str]]) -> list[str]:
        if indicators is None:
            return self.AVAILABLE_INDICATORS.copy()
        unknown = [name for name in indicators if name not in self.AVAILABLE_INDICATORS]
        if unknown:
            raise CalculationError(
                f"Unknown indicators: {unknown}. Available: {self.AVAILABLE_INDICATORS}",
                INVALID_PARAMETER,
            )
        return list(indicators)

    # Latest values

    def calculate_all(
        self, prices: Sequence[float], indicators: Optional[Sequence[str]] = None
    ) -> pd.Series:
        """Latest value of every configured indicator.

        Args:
            prices: Price series, oldest first
            indicators: Subset of AVAILABLE_INDICATORS (default: all)

        Returns:
            Series keyed by indicator name; NaN where the data is too short

        Raises:
            CalculationError: On malformed prices or unknown indicators
        """
        array = validate_prices_array(prices)
        values: dict[str, float] = {}

        for indicator in self._check_indicators(indicators):
            if indicator == "ma":
                self._latest_ma(array, values)
            elif indicator == "ema":
                self._latest_ema(array, values)
            elif indicator == "rsi":
                self._latest_rsi(array, values)
            elif indicator == "macd":
                self._latest_macd(array, values)
            elif indicator == "deviation":
                self._latest_deviation(array, values)
            elif indicator == "bollinger":
                self._latest_bollinger(array, values)

        return pd.Series(values, dtype=float)

    @staticmethod
    def _collect(values: dict, names: list[str], compute: Callable[[], list[float]]) -> None:
        try:
            results = compute()
        except CalculationError as e:
            logger.debug(f"{names[0]} skipped: {e}")
            results = [math.nan] * len(names)
        values.update(zip(names, results))

    def _latest_ma(self, array: np.ndarray, values: dict) -> None:
        for ma in self._ma:
            self._collect(values, [ma.name], lambda: [ma.calculate(array)])

    def _latest_ema(self, array: np.ndarray, values: dict) -> None:
        for ema in self._ema:
            self._collect(values, [f"EMA_{ema.period}"], lambda: [ema.calculate_ema(array)])

    def _latest_rsi(self, array: np.ndarray, values: dict) -> None:
        for rsi in self._rsi:
            self._collect(values, [rsi.name], lambda: [rsi.calculate(array)])

    def _latest_macd(self, array: np.ndarray, values: dict) -> None:
        for macd in self._macd:
            suffix = f"_{macd.fast_period}_{macd.slow_period}_{macd.signal_period}"

            def compute():
                result = macd.calculate(array)
                return [result.macd, result.signal, result.histogram]

            self._collect(
                values,
                [f"MACD{suffix}", f"MACD_signal{suffix}", f"MACD_hist{suffix}"],
                compute,
            )

    def _latest_deviation(self, array: np.ndarray, values: dict) -> None:
        for deviation in self._deviation:
            self._collect(
                values, [deviation.name], lambda: [deviation.calculate(array).deviation]
            )

    def _latest_bollinger(self, array: np.ndarray, values: dict) -> None:
        for bollinger in self._bollinger:
            suffix = f"_{bollinger.period}_{bollinger.num_std}"

            def compute():
                result = bollinger.calculate(array)
                return [result.upper, result.middle, result.lower,
                        result.bandwidth, result.percent_b]

            self._collect(values, self._bollinger_names(suffix), compute)

    @staticmethod
    def _bollinger_names(suffix: str) -> list[str]:
        return [
            f"BB_upper{suffix}",
            f"BB_middle{suffix}",
            f"BB_lower{suffix}",
            f"BB_bandwidth{suffix}",
            f"BB_percent_b{suffix}",
        ]

    # Full series

    def calculate_frame(
        self, prices: Sequence[float], indicators: Optional[Sequence[str]] = None
    ) -> pd.DataFrame:
        """Full indicator series aligned to the input.

        Every column has one row per price; rows before an indicator has
        enough data are NaN. A pandas Series keeps its index.

        Raises:
            CalculationError: On malformed prices or unknown indicators
        """
        array = validate_prices_array(prices)
        index = prices.index if isinstance(prices, pd.Series) else pd.RangeIndex(len(array))
        result = pd.DataFrame(index=index)

        for indicator in self._check_indicators(indicators):
            if indicator == "ma":
                self._add_ma(array, result)
            elif indicator == "ema":
                self._add_ema(array, result)
            elif indicator == "rsi":
                self._add_rsi(array, result)
            elif indicator == "macd":
                self._add_macd(array, result)
            elif indicator == "deviation":
                self._add_deviation(array, result)
            elif indicator == "bollinger":
                self._add_bollinger(array, result)

        return result

    @staticmethod
    def _aligned(values: Sequence[float], length: int) -> np.ndarray:
        """Right-align values to ``length`` rows, NaN-padded in front."""
        column = np.full(length, np.nan)
        if len(values):
            column[length - len(values):] = values
        return column

    def _add_ma(self, array: np.ndarray, result: pd.DataFrame) -> None:
        for ma in self._ma:
            result[ma.name] = self._aligned(ma.calculate_array(array), len(array))

    def _add_ema(self, array: np.ndarray, result: pd.DataFrame) -> None:
        for ema in self._ema:
            values = [round_to(v, 3) for v in exponential_moving_average(array, ema.period)]
            column = self._aligned(values, len(array))
            # Same warmup as the single-value EMA
            column[:ema.period - 1] = np.nan
            result[f"EMA_{ema.period}"] = column

    def _add_rsi(self, array: np.ndarray, result: pd.DataFrame) -> None:
        for rsi in self._rsi:
            result[rsi.name] = self._aligned(rsi.calculate_array(array), len(array))

    def _add_macd(self, array: np.ndarray, result: pd.DataFrame) -> None:
        for macd in self._macd:
            series = macd.calculate_array(array)
            suffix = f"_{macd.fast_period}_{macd.slow_period}_{macd.signal_period}"
            result[f"MACD{suffix}"] = self._aligned(series.macd, len(array))
            result[f"MACD_signal{suffix}"] = self._aligned(series.signal, len(array))
            result[f"MACD_hist{suffix}"] = self._aligned(series.histogram, len(array))

    def _add_deviation(self, array: np.ndarray, result: pd.DataFrame) -> None:
        for deviation in self._deviation:
            period = deviation.period
            values = []
            if len(array) >= period:
                current = array[period - 1:]
                offsets = (sliding_window_view(array, period) - current[:, None]).mean(axis=1)
                ma = current + offsets
                with np.errstate(divide="ignore", invalid="ignore"):
                    values = np.where(ma != 0, -offsets / ma * 100, np.nan)
            result[deviation.name] = self._aligned(values, len(array))

    def _add_bollinger(self, array: np.ndarray, result: pd.DataFrame) -> None:
        for bollinger in self._bollinger:
            series = bollinger.calculate_array(array)
            names = self._bollinger_names(f"_{bollinger.period}_{bollinger.num_std}")
            columns = [series.upper, series.middle, series.lower,
                       series.bandwidth, series.percent_b]
            for name, values in zip(names, columns):
                result[name] = self._aligned(values, len(array))
