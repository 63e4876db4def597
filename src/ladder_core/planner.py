"""
Ladder plan builder: start price + budget + depth schedule -> buy levels.

Depths run stepPct, 2*stepPct, ... up to and including depthPct. The
budget is split equally across levels regardless of depth.

    price_i      = start_price * (1 - depth_i / 100)
    planned_usd  = base_budget / n

Pure function; no I/O. Non-positive start price or budget gives an empty plan.
"""

from __future__ import annotations

from ladder_core.contracts import PlanLevel
from ladder_core.numbers import as_float

DEPTH_EPSILON = 1e-9
EXTRA_DEEP_DEPTHS = (80.0, 90.0)
MAX_STEPPED_LEVELS = 1_000

PRICE_DECIMALS = 8
USD_DECIMALS = 2


def _stepped_depths(step_pct: float, depth_pct: float) -> list[float]:
    depths: list[float] = []
    if step_pct <= 0:
        return depths
    # A step too small for the depth would build an unbounded ladder.
    if int((depth_pct + DEPTH_EPSILON) / step_pct) > MAX_STEPPED_LEVELS:
        return depths
    k = 1
    while step_pct * k <= depth_pct + DEPTH_EPSILON:
        depths.append(round(step_pct * k, 4))
        k += 1
    return depths


def build_plan(
    start_price: float,
    base_budget: float,
    step_pct: float,
    depth_pct: float,
    include_extra_deep: bool = False,
) -> list[PlanLevel]:
    """Build equal-weight buy levels below *start_price*.

    ``include_extra_deep`` adds the 80% and 90% levels even when they are
    not multiples of *step_pct*. Depths are deduplicated and sorted, so
    levels come out shallow to deep with strictly falling prices.
    A step that would need more than MAX_STEPPED_LEVELS stepped levels
    contributes none.
    """
    start_price = as_float(start_price)
    base_budget = as_float(base_budget)
    if start_price <= 0 or base_budget <= 0:
        return []

    depths = _stepped_depths(as_float(step_pct), as_float(depth_pct))
    if include_extra_deep:
        for extra in EXTRA_DEEP_DEPTHS:
            if extra not in depths:
                depths.append(extra)
    depths = sorted(set(depths))

    n = len(depths) or 1
    per_level = round(base_budget / n, USD_DECIMALS)

    return [
        PlanLevel(
            level=i + 1,
            depth_pct=d,
            price=round(start_price * (1 - d / 100), PRICE_DECIMALS),
            planned_usd=per_level,
        )
        for i, d in enumerate(depths)
    ]
