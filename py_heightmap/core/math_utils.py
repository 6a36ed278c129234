"""Numeric helpers shared by the grid and the sampler."""

INT16_MIN = -32768
INT16_MAX = 32767


def clamp01(value: float) -> float:
    """Clamp a value between 0 and 1."""
    if value >= 1:
        return 1.0
    if value <= 0:
        return 0.0
    return value


def lerp(t: float, a: float, b: float) -> float:
    """
    Linearly interpolate from a to b.

    Args:
        t: Fraction between the two values, clamped to [0, 1]
        a: Value at t == 0
        b: Value at t == 1

    Returns:
        Interpolated value
    """
    if a == b or t <= 0:
        return a
    if t >= 1:
        return b
    return a + (b - a) * t


def clamp_to_range(value: float, minimum: float, maximum: float) -> float:
    """
    Clamp a value between a minimum and a maximum.

    A degenerate range (minimum == maximum) always yields the maximum.
    """
    if value >= maximum or minimum == maximum:
        return maximum
    if value <= minimum:
        return minimum
    return value


def clamp_to_int16(value: float) -> int:
    """Saturate a value into the signed 16-bit range, rounding to nearest."""
    if value >= INT16_MAX:
        return INT16_MAX
    if value <= INT16_MIN:
        return INT16_MIN
    # round() ties to even
    return int(round(value))
