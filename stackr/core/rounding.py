import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up.

    Matches the rounding the web client uses for amounts and percentages
    (2.5 -> 3, 22.5 -> 23), unlike the builtin round() which rounds halves to even.
    """
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
