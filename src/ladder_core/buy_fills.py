"""
Buy fills under a per-block average cost cap (weighted profile ladders).

For the first k levels ("block" k) the plan implies a target average

    A_k = sum(planned_usd[1..k]) / sum(planned_usd[i] / price[i], i = 1..k)

Executed buys fund the ladder in USD. While the funded amount sits inside
block k, the blended average cost of everything funded so far may not
exceed A_k; a buy that would push it over is taken only in part (found by
bisection) and the rest of it stays off-plan.

Buys priced at most 2% (plus ``tolerance``) above the top level are used
first, oldest first; equal timestamps keep input order. If the ladder is
still short, buys above that band are recruited cheapest first under the
same cap. The funded USD is then reported top-down per level.

Pure function; no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from ladder_core.contracts import Buy, BuyFillResult, PlanLevel
from ladder_core.numbers import as_float
from ladder_core.ordering import chronological

ON_PLAN_BAND = 0.02
EPS = 1e-9
BISECT_STEPS = 50


@dataclass
class _Lot:
    price: float
    usd_remaining: float


class _Ladder:
    """Running USD / token totals of the funded ladder, checked against block targets."""

    def __init__(self, cum_usd: list[float], target_avg: list[float]) -> None:
        self.cum_usd = cum_usd
        self.target_avg = target_avg
        self.total = cum_usd[-1]
        self.usd = 0.0
        self.tokens = 0.0

    @property
    def full(self) -> bool:
        return self.usd >= self.total - EPS

    def _block(self) -> int | None:
        for k, cap in enumerate(self.cum_usd):
            if self.usd < cap - EPS:
                return k
        return None

    def _avg_if_add(self, usd: float, price: float) -> float:
        return (self.usd + usd) / (self.tokens + usd / price)

    def absorb(self, lot: _Lot) -> None:
        while lot.usd_remaining > EPS and not self.full:
            k = self._block()
            if k is None:
                break
            allowed = self.target_avg[k]
            if allowed <= 0:
                break
            hi = min(lot.usd_remaining, self.cum_usd[k] - self.usd, self.total - self.usd)
            if hi <= EPS:
                break

            if self._avg_if_add(hi, lot.price) <= allowed + EPS:
                take = hi
            else:
                lo, top = 0.0, hi
                for _ in range(BISECT_STEPS):
                    mid = (lo + top) / 2
                    if self._avg_if_add(mid, lot.price) <= allowed + EPS:
                        lo = mid
                    else:
                        top = mid
                take = lo

            # Nothing more fits without breaking the block average; a cheaper lot may.
            if take <= EPS:
                break
            self.usd += take
            self.tokens += take / lot.price
            lot.usd_remaining -= take


def _empty(n: int, planned_total: float) -> BuyFillResult:
    return BuyFillResult(
        allocated_usd=[0.0] * n,
        fill_pct=[0.0] * n,
        planned_total=planned_total,
    )


def compute_buy_fills(
    levels: Sequence[PlanLevel],
    buys: Sequence[Buy],
    tolerance: float = 0.0,
) -> BuyFillResult:
    """Fund *levels* from *buys* without letting any block's average exceed its plan.

    *tolerance* is a fraction added to the 2% on-plan band above the top
    level (0.05 widens it to 7%). Levels are read shallow to deep by
    ``level``. Returns all-zero fills when there are no levels, no budget,
    no priced level or no usable buy.
    """
    ordered = sorted(levels, key=lambda lv: lv.level)
    n = len(ordered)
    planned_total = sum(as_float(lv.planned_usd) for lv in ordered)
    if not ordered or planned_total <= 0 or not buys:
        return _empty(n, planned_total)

    planned = [max(0.0, as_float(lv.planned_usd)) for lv in ordered]
    prices = [as_float(lv.price) for lv in ordered]

    cum_usd: list[float] = []
    target_avg: list[float] = []
    usd_acc = 0.0
    tokens_acc = 0.0
    for usd, price in zip(planned, prices):
        usd_acc += usd
        tokens_acc += usd / price if price > 0 else 0.0
        cum_usd.append(usd_acc)
        target_avg.append(usd_acc / tokens_acc if tokens_acc > 0 else 0.0)

    top_price = max((p for p in prices if p > 0), default=0.0)
    if cum_usd[-1] <= 0 or top_price <= 0:
        return _empty(n, planned_total)
    band_max = top_price * (1 + ON_PLAN_BAND + max(0.0, as_float(tolerance)))

    lots: list[_Lot] = []
    for b in chronological(buys):
        price = as_float(b.price)
        qty = as_float(b.qty)
        usd = price * qty + as_float(b.fee)
        if usd <= 0 or price <= 0 or qty <= 0:
            continue
        lots.append(_Lot(price=price, usd_remaining=usd))
    if not lots:
        return _empty(n, planned_total)
    bought_usd = sum(lot.usd_remaining for lot in lots)

    ladder = _Ladder(cum_usd, target_avg)
    on_plan = [lot for lot in lots if lot.price <= band_max]
    off_plan = sorted((lot for lot in lots if lot.price > band_max), key=lambda lot: lot.price)
    for pool in (on_plan, off_plan):
        for lot in pool:
            if ladder.full:
                break
            ladder.absorb(lot)

    allocated: list[float] = []
    left = ladder.usd
    for usd in planned:
        take = min(usd, left) if usd > 0 and left > 0 else 0.0
        allocated.append(round(take, 2))
        left -= take

    allocated_total = round(sum(allocated), 2)
    return BuyFillResult(
        allocated_usd=allocated,
        fill_pct=[min(1.0, a / p) if p > 0 else 0.0 for a, p in zip(allocated, planned)],
        off_plan_usd=round(max(0.0, bought_usd - allocated_total), 2),
        planned_total=planned_total,
        allocated_total=allocated_total,
    )


def apply_buy_fills(levels: Sequence[PlanLevel], result: BuyFillResult) -> list[PlanLevel]:
    """Copy a BuyFillResult onto its levels (shallow to deep) for display."""
    ordered = sorted(levels, key=lambda lv: lv.level)
    return [
        replace(lv, filled_usd=result.allocated_usd[i], filled_pct=result.fill_pct[i])
        if i < len(result.allocated_usd)
        else lv
        for i, lv in enumerate(ordered)
    ]
