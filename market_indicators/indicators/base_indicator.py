"""Base class for all technical indicators."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import numpy as np

from .validation import validate_prices_array


@dataclass
class IndicatorResult:
    """Container for indicator calculation results.

    Attributes:
        name: Indicator identifier (e.g., 'MA_25', 'MACD_12_26_9')
        value: Calculated value (float or indicator-specific result object)
        params: Parameters used for calculation
        signal: Optional signal interpretation (e.g., 'overbought', 'bullish')
    """
    name: str
    value: Any
    params: dict = field(default_factory=dict)
    signal: Optional[str] = None


class BaseIndicator(ABC):
    """Abstract base class for all technical indicators.

    Subclasses must implement:
        - name: Property returning indicator name
        - params: Property returning the default parameters
        - calculate: Method performing the actual calculation

    Subclasses may override classify() to attach a signal to the result.

    Usage:
        indicator = ConcreteIndicator()
        result = indicator(prices)  # Validates, calculates and classifies
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return indicator name."""
        pass

    @property
    @abstractmethod
    def params(self) -> dict:
        """Return the default calculation parameters."""
        pass

    @abstractmethod
    def calculate(self, prices: Sequence[float], **kwargs) -> Any:
        """Calculate the latest indicator value.

        Args:
            prices: Price series, oldest first
            **kwargs: Overrides for the default parameters

        Returns:
            Indicator value
        """
        pass

    def classify(self, value: Any, prices: np.ndarray) -> Optional[str]:
        """Map a calculated value to a discrete signal (None if not applicable)."""
        return None

    def validate_data(self, prices: Sequence[float]) -> np.ndarray:
        """Validate the price series.

        Raises:
            CalculationError: If prices are empty, not a sequence, or non-finite
        """
        return validate_prices_array(prices)

    def __call__(self, prices: Sequence[float], **kwargs) -> IndicatorResult:
        """Validate data, calculate and classify the indicator.

        Args:
            prices: Price series
            **kwargs: Calculation parameters

        Returns:
            IndicatorResult with value and signal
        """
        array = self.validate_data(prices)
        value = self.calculate(array, **kwargs)
        return IndicatorResult(
            name=self.name,
            value=value,
            params={**self.params, **kwargs},
            signal=self.classify(value, array),
        )
