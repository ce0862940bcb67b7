"""Shared input validation for all indicator calculators.

Every calculator runs its inputs through these functions before computing
anything, so error messages stay identical across indicators.
"""

from collections.abc import Mapping, Set
from numbers import Real
from typing import Any, Optional

import numpy as np
import pandas as pd


INVALID_PRICES = "INVALID_PRICES"
INVALID_PARAMETER = "INVALID_PARAMETER"
INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
EMPTY_INPUT = "EMPTY_INPUT"
CALCULATION_FAILED = "CALCULATION_FAILED"


class CalculationError(ValueError):
    """Raised for every validation or computation failure in a calculator.

    Attributes:
        message: Human-readable description
        code: Failure classification (INVALID_PRICES, INVALID_PARAMETER, ...)
        index: Offending position in the input, if any
        value: Offending value, if any
    """

    def __init__(
        self,
        message: str,
        code: str = CALCULATION_FAILED,
        index: Optional[int] = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.index = index
        self.value = value


def _is_number(value: Any) -> bool:
    return isinstance(value, (Real, np.number)) and not isinstance(value, (bool, np.bool_))


def validate_prices_array(prices: Any) -> np.ndarray:
    """Validate a price series and return it as a float array.

    Args:
        prices: Ordered sequence of prices (list, tuple, ndarray or Series)

    Returns:
        Read-only float64 copy of the prices

    Raises:
        CalculationError: If prices is not a sequence, is empty, or contains
            a non-numeric or non-finite value
    """
    if isinstance(prices, (str, bytes, Mapping, Set)) or prices is None:
        raise CalculationError("Prices must be a sequence of numbers", INVALID_PRICES)

    if isinstance(prices, pd.Series):
        values = list(prices.to_numpy())
    elif isinstance(prices, np.ndarray):
        if prices.ndim != 1:
            raise CalculationError("Prices must be a sequence of numbers", INVALID_PRICES)
        values = list(prices)
    else:
        try:
            values = list(prices)
        except TypeError:
            raise CalculationError("Prices must be a sequence of numbers", INVALID_PRICES)

    if len(values) == 0:
        raise CalculationError("Prices array cannot be empty", EMPTY_INPUT)

    for i, price in enumerate(values):
        if not _is_number(price) or not np.isfinite(price):
            raise CalculationError(
                f"Invalid price at index {i}: {price}. "
                "Prices must contain only finite numbers",
                INVALID_PRICES,
                index=i,
                value=price,
            )

    array = np.asarray(values, dtype=np.float64)
    array.setflags(write=False)
    return array


def validate_period(period: Any, name: str = "period") -> int:
    """Validate a window length.

    Integral floats such as 14.0 are accepted and normalised to int.

    Returns:
        The period as int

    Raises:
        CalculationError: Unless period is a positive integer
    """
    valid = False
    if _is_number(period):
        if isinstance(period, (int, np.integer)):
            valid = period > 0
        else:
            valid = np.isfinite(period) and float(period).is_integer() and period > 0

    if not valid:
        raise CalculationError(
            f"{name} must be a positive integer, got: {period}",
            INVALID_PARAMETER,
            value=period,
        )
    return int(period)


def validate_data_length(available: int, required: int, label: str = "data") -> None:
    """Raise unless at least ``required`` data points are available."""
    if available < required:
        raise CalculationError(
            f"Insufficient {label}: need {required}, got {available}",
            INSUFFICIENT_DATA,
        )


def validate_period_relationship(fast_period: Any, slow_period: Any) -> tuple[int, int]:
    """Validate a fast/slow period pair.

    Returns:
        (fast, slow) as ints

    Raises:
        CalculationError: If either is invalid or slow is not greater than fast
    """
    fast = validate_period(fast_period, "fast_period")
    slow = validate_period(slow_period, "slow_period")

    if slow <= fast:
        raise CalculationError(
            f"Slow period ({slow}) must be greater than fast period ({fast})",
            INVALID_PARAMETER,
        )
    return fast, slow
