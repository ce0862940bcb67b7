"""Numeric primitives shared by the indicator calculators."""

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Sequence

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from .validation import (
    CalculationError,
    EMPTY_INPUT,
    validate_period,
    validate_prices_array,
)


def average(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for fewer than two values."""
    if len(values) <= 1:
        return 0.0
    return float(np.std(values))


def simple_moving_average(values: Sequence[float], period: int) -> list[float]:
    """Trailing-window means, one per complete window.

    Returns an empty list when there are fewer values than the period.
    """
    array = validate_prices_array(values)
    period = validate_period(period)

    if len(array) < period:
        return []

    windows = sliding_window_view(array, period)
    return windows.mean(axis=1).tolist()


def exponential_moving_average(values: Sequence[float], period: int) -> list[float]:
    """EMA seeded with the first value, same length as the input.

    ema[i] = value[i] * alpha + ema[i - 1] * (1 - alpha), alpha = 2 / (period + 1)
    """
    array = validate_prices_array(values)
    period = validate_period(period)

    ema = pd.Series(array).ewm(span=period, adjust=False).mean()
    return ema.tolist()


def round_to(value: float, digits: int = 2) -> float:
    """Round half away from zero to a fixed number of decimals."""
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-digits)
    number = Decimal(repr(float(value)))
    with localcontext() as ctx:
        # Enough significant digits for every integer digit plus the decimals
        ctx.prec = max(ctx.prec, number.adjusted() + digits + 2)
        return float(number.quantize(quantum, rounding=ROUND_HALF_UP))


def last_n(values: Sequence, n: int) -> list:
    """Trailing n elements; the whole sequence when n <= 0 or n >= len."""
    items = list(values)
    if n <= 0 or n >= len(items):
        return items
    return items[-n:]


def max_value(values: Sequence[float]) -> float:
    if len(values) == 0:
        raise CalculationError("Cannot take the maximum of an empty sequence", EMPTY_INPUT)
    return max(values)


def min_value(values: Sequence[float]) -> float:
    if len(values) == 0:
        raise CalculationError("Cannot take the minimum of an empty sequence", EMPTY_INPUT)
    return min(values)
