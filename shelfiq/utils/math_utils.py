import math
from typing import Union

Number = Union[int, float]

def round_half_up(value: Number, ndigits: int = 0) -> Number:
    """Round with halves going toward positive infinity (2.5 -> 3, -2.5 -> -2).

    Returns an int when ndigits is 0.
    """
    if ndigits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor

def safe_divide(numerator: Number, denominator: Number) -> float:
    """Divide, resolving a zero denominator to 0"""
    return numerator / denominator if denominator else 0.0

def percentage(part: Number, whole: Number) -> int:
    """Whole-number percentage of part in whole, 0 when whole is empty"""
    return round_half_up(safe_divide(part, whole) * 100)
