from __future__ import annotations

from math import pi


def deg2rad(degrees: float) -> float:
    return degrees * pi / 180


def rad2deg(radians: float) -> float:
    return radians * 180 / pi


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def lerp(start: float, end: float, alpha: float) -> float:
    """Linear interpolation, ``alpha`` = 0 gives ``start`` and 1 gives ``end``."""
    return start + (end - start) * alpha


def ease_out_cubic(t: float) -> float:
    """
    Cubic ease-out curve.

    Args:
        t: Normalised progress in [0, 1].

    Returns:
        Eased progress, fast at the start and settling at 1.
    """
    return 1 - (1 - t) ** 3
