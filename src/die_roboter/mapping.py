"""Linear range mapping between user control ranges and joint ranges."""


def map_value(value: float, from_low: float, from_high: float,
              to_low: float, to_high: float) -> float:
    """Map ``value`` from [from_low, from_high] onto [to_low, to_high].

    Identical ranges return ``value`` untouched and a degenerate source range
    returns ``to_low``. The result is not clamped: values outside the source
    range extrapolate linearly past the target range.

    Example:
        >>> map_value(50, -100, 100, -1.5, 1.5)
        0.75
    """
    if from_low == to_low and from_high == to_high:
        return value

    if from_low == from_high:
        return to_low

    normalized = (value - from_low) / (from_high - from_low)
    return to_low + normalized * (to_high - to_low)
