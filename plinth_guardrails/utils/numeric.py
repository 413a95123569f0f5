"""
Numeric Helpers

Small aggregation helpers shared by the scoring and drift guardrails.
"""

import math
from typing import Iterable


def round_half_up(value: float, digits: int = 2) -> float:
    """
    Round halves upward, like Math.round on a scaled value.

    Python's round() uses banker's rounding, which would report a mean delta
    of 0.125 as 0.12.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def mean(values: Iterable[float], default: float = 0.0) -> float:
    """Arithmetic mean; default for an empty input."""
    items = list(values)
    if not items:
        return default
    return sum(items) / len(items)


def population_std_dev(values: Iterable[float]) -> float:
    """Population standard deviation (divides by n, not n - 1)."""
    items = list(values)
    if not items:
        return 0.0
    avg = sum(items) / len(items)
    variance = sum((v - avg) ** 2 for v in items) / len(items)
    return math.sqrt(variance)
