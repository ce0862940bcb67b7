"""Price/oscillator divergence detection.

Both windows go through the same extremum pass; the direction of each
window (where its low sits relative to its high) is then looked up in a
fixed decision table.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


RISING = "rising"
FALLING = "falling"
FLAT = "flat"

# (price direction, indicator direction) -> divergence
DIVERGENCE_TABLE = {
    (FALLING, RISING): "bullish",
    (RISING, FALLING): "bearish",
    (RISING, RISING): "none",
    (FALLING, FALLING): "none",
}


@dataclass(frozen=True)
class Extremes:
    """Positions of the first minimum and first maximum inside a window."""
    low_index: int
    high_index: int


def find_extremes(window: Sequence[float]) -> Extremes:
    values = np.asarray(window, dtype=np.float64)
    return Extremes(low_index=int(np.argmin(values)), high_index=int(np.argmax(values)))


def direction_of(extremes: Extremes) -> str:
    """A low printed after the high means the window is falling, and vice versa."""
    if extremes.low_index > extremes.high_index:
        return FALLING
    if extremes.high_index > extremes.low_index:
        return RISING
    return FLAT


def detect_divergence(price_window: Sequence[float], indicator_window: Sequence[float]) -> str:
    """Classify a price window against an indicator window of the same span.

    Returns:
        "bullish", "bearish" or "none"
    """
    if len(price_window) < 2 or len(indicator_window) < 2:
        return "none"

    price_direction = direction_of(find_extremes(price_window))
    indicator_direction = direction_of(find_extremes(indicator_window))
    return DIVERGENCE_TABLE.get((price_direction, indicator_direction), "none")
