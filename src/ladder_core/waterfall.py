"""
Waterfall allocator: executed buys -> fill state per plan level.

A buy is eligible for a level when

    buy.price <= level.price * (1 + tolerance_pct / 100)

Buys are matched cheapest first (not in execution order). Each buy's USD
value (price * qty + fee) starts at its shallowest eligible level and
spills into deeper levels once a level is full. It never flows back up.
A buy priced above every level (plus tolerance) is not counted anywhere.

Fill state is rebuilt from zero on every call; calling twice with the
same inputs gives the same output.

Pure function; no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from ladder_core.contracts import Buy, PlanLevel
from ladder_core.numbers import as_float


@dataclass(frozen=True)
class FillSummary:
    planned_total: float
    filled_total: float

    @property
    def fill_ratio(self) -> float:
        if self.planned_total <= 0:
            return 0.0
        return min(1.0, self.filled_total / self.planned_total)


def _buy_usd(buy: Buy) -> float:
    return as_float(buy.price) * as_float(buy.qty) + as_float(buy.fee)


def allocate_buys_to_plan(
    levels: Sequence[PlanLevel],
    buys: Sequence[Buy],
    tolerance_pct: float = 5.0,
) -> list[PlanLevel]:
    """Map *buys* onto *levels* and return new levels with filled_usd/filled_pct set.

    level, depth_pct, price and planned_usd pass through unchanged. When
    either input is empty the levels are returned as given.
    """
    if not levels or not buys:
        return list(levels)

    tol = as_float(tolerance_pct) / 100
    ordered = sorted(levels, key=lambda lv: lv.level)
    planned = [as_float(lv.planned_usd) for lv in ordered]
    ceilings = [as_float(lv.price) * (1 + tol) for lv in ordered]
    filled = [0.0] * len(ordered)

    for buy in sorted(buys, key=lambda b: as_float(b.price)):
        usd = _buy_usd(buy)
        if usd <= 0:
            continue
        price = as_float(buy.price)

        start = next((i for i, ceiling in enumerate(ceilings) if price <= ceiling), None)
        if start is None:
            continue

        for i in range(start, len(ordered)):
            if usd <= 0:
                break
            remaining = max(0.0, planned[i] - filled[i])
            if remaining <= 0:
                continue
            take = min(remaining, usd)
            filled[i] += take
            usd -= take

    return [
        replace(
            lv,
            filled_usd=filled[i],
            filled_pct=min(1.0, filled[i] / planned[i]) if planned[i] > 0 else 0.0,
        )
        for i, lv in enumerate(ordered)
    ]


def summarize_fills(levels: Sequence[PlanLevel]) -> FillSummary:
    """Totals across a filled plan, for summaries and exports."""
    return FillSummary(
        planned_total=sum(as_float(lv.planned_usd) for lv in levels),
        filled_total=sum(as_float(lv.filled_usd) for lv in levels),
    )
