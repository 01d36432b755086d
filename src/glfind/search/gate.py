"""Relevance gate: damps history and starred bonuses for weak matches.

A project picked fifty times should not outrank a precise match just
because the query grazed one of its fields. ``relevance_multiplier`` maps
a raw (normalized) search score to a factor in [0, 1] that scales both
bonuses before they are added.
"""

from __future__ import annotations

import math
from bisect import bisect_right

# (raw score, multiplier); 0 below the first point, 1 from the last
BREAKPOINTS: tuple[tuple[float, float], ...] = (
    (0.10, 0.00),
    (0.30, 0.10),
    (0.50, 0.25),
    (0.70, 0.45),
    (0.90, 0.65),
    (1.15, 0.85),
    (1.40, 1.00),
)

_SCORES = [score for score, _ in BREAKPOINTS]


def relevance_multiplier(score: float) -> float:
    """Map a raw search score to a bonus multiplier.

    Within each band the curve is ``low + (high - low) * sqrt(t)``, so it
    rises quickly past a breakpoint and flattens toward the next one. The
    result is continuous and non-decreasing.
    """
    if math.isnan(score) or score <= BREAKPOINTS[0][0]:
        return 0.0
    if score >= BREAKPOINTS[-1][0]:
        return 1.0
    i = bisect_right(_SCORES, score)
    band_low, low = BREAKPOINTS[i - 1]
    band_high, high = BREAKPOINTS[i]
    t = (score - band_low) / (band_high - band_low)
    return low + (high - low) * math.sqrt(t)
