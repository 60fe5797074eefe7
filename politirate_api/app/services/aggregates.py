"""
Small reductions over already-fetched rows.

Rounding is half-up on the exact binary value, the same rule browsers
apply for ``toFixed`` and ``Math.round``, so averages computed here
match what the web client shows.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional


def average_rating(ratings: Iterable[int]) -> float:
    """Mean of ``ratings`` rounded half-up to two decimals; ``0`` when empty."""
    values = list(ratings)
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return float(Decimal(mean).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def percentage(count: int, total: int) -> int:
    """Share of ``total`` as a whole percent; ``0`` when ``total`` is 0."""
    if total <= 0:
        return 0
    return int(math.floor(count / total * 100 + 0.5))


def average_hours(durations_seconds: Iterable[float]) -> Optional[int]:
    """Mean duration in whole hours, or ``None`` for no durations."""
    values = list(durations_seconds)
    if not values:
        return None
    return int(math.floor(sum(values) / 3600 / len(values) + 0.5))
