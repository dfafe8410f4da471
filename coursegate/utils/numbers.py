"""Numeric helpers shared by the progress store and the playback tracker."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Progress values are reported the way browsers round them, so 12.5
    becomes 13 (the builtin ``round`` would give 12).

    Examples:
        >>> round_half_up(12.5)
        13
        >>> round_half_up(89.49)
        89
    """
    return math.floor(value + 0.5)


def clamp(value: float, lower: float, upper: float | None = None) -> float:
    """Clamp ``value`` into ``[lower, upper]`` (no upper bound when None)."""
    if value < lower:
        return lower
    if upper is not None and value > upper:
        return upper
    return value
