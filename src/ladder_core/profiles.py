"""
Weighted ladder profiles: fixed drawdown sets with geometrically growing budgets.

Each deeper level gets ``growth_pct_per_level`` percent more budget than
the one above it. Allocations are floored to cents and the leftover cents
go to the deepest level, so the levels always sum to the budget exactly.

    70 -> moderate      20, 30, 40, 50, 60, 70
    75 -> aggressive    25, 50, 75
    90 -> conservative  20, 30, 40, 50, 60, 70, 80, 90
"""

from __future__ import annotations

import math

from ladder_core.contracts import PlanLevel
from ladder_core.numbers import as_float
from ladder_core.planner import PRICE_DECIMALS, USD_DECIMALS

PROFILE_DEPTHS: dict[int, tuple[float, ...]] = {
    70: (20.0, 30.0, 40.0, 50.0, 60.0, 70.0),
    75: (25.0, 50.0, 75.0),
    90: (20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0, 90.0),
}

PROFILE_NAMES = {70: "moderate", 75: "aggressive", 90: "conservative"}


def _allocate_cents(budget_usd: float, weights: list[float]) -> list[float]:
    sum_w = sum(weights) or 1.0
    cents = [math.floor(budget_usd * w / sum_w * 100) for w in weights]
    cents[-1] += round(budget_usd * 100) - sum(cents)
    return [c / 100 for c in cents]


def build_weighted_plan(
    top_price: float,
    budget_usd: float,
    ladder_depth: int,
    growth_pct_per_level: float = 25.0,
) -> list[PlanLevel]:
    """Build a profile ladder. Raises ValueError for an unknown *ladder_depth*."""
    if ladder_depth not in PROFILE_DEPTHS:
        raise ValueError(
            f"Unsupported ladder depth {ladder_depth!r}. Supported: {sorted(PROFILE_DEPTHS)}"
        )
    top_price = as_float(top_price)
    budget_usd = as_float(budget_usd)
    if top_price <= 0 or budget_usd <= 0:
        return []

    depths = PROFILE_DEPTHS[ladder_depth]
    ratio = 1 + as_float(growth_pct_per_level) / 100
    weights = [ratio**i for i in range(len(depths))]
    allocations = _allocate_cents(budget_usd, weights)

    return [
        PlanLevel(
            level=i + 1,
            depth_pct=d,
            price=round(top_price * (1 - d / 100), PRICE_DECIMALS),
            planned_usd=round(allocations[i], USD_DECIMALS),
        )
        for i, d in enumerate(depths)
    ]


def est_tokens(level: PlanLevel) -> float:
    """Tokens the level's budget buys at its target price (display only)."""
    if level.price <= 0:
        return 0.0
    return round(level.planned_usd / level.price, 6)
