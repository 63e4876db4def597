"""
Level touch detection between two price ticks.

A level counts as touched when the current price sits in a small band
around it (0.10% relative or $0.05 absolute), or when price crossed it
since the last tick: downward for buy levels, upward for sell levels.
"""

from __future__ import annotations

import math

BAND_PCT = 0.001
BAND_ABS = 0.05


def is_level_touched(
    side: str,
    level_price: float,
    last_price: float | None,
    current_price: float | None,
) -> bool:
    if current_price is None or not math.isfinite(level_price):
        return False

    distance = abs(current_price - level_price)
    near = distance / max(1.0, level_price) <= BAND_PCT or distance <= BAND_ABS

    crossed = False
    if last_price is not None:
        if side == "buy":
            crossed = last_price > level_price and current_price <= level_price
        else:
            crossed = last_price < level_price and current_price >= level_price

    return near or crossed
