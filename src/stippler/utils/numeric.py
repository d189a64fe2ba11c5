"""Small numeric helpers shared by the rendering pipeline."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity.

    Python's built-in round() uses banker's rounding, which would move
    grid steps and animation curves at exact .5 boundaries.
    """
    return math.floor(value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into the closed interval [low, high]."""
    return max(low, min(high, value))
