"""Numeric helpers shared by progress reporting and extraction statistics."""

from __future__ import annotations

import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with ties away from zero for non-negative values (8.25 -> 8.3).

    The built-in ``round`` rounds ties to even, which reports 8.2 for 8.25.
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def mean_confidence(confidences: list[float]) -> float:
    """Average rounded half-up to one decimal; 0 when nothing was recorded."""
    if not confidences:
        return 0
    return round_half_up(sum(confidences) / len(confidences), 1)
