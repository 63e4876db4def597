"""
Sell ladder: take-profit levels above a baseline price and their fill state.

    target_i = baseline * (1 + step_pct / 100) ** i      (i = 1..levels_count)

Each level sells a percentage of whatever is still held when it is reached.
Sells are matched oldest first; a sell is eligible for every level whose
target it reached within ``tolerance`` (price >= target * (1 - tolerance)),
filling the shallowest open levels first. What no level can absorb is
reported as off-plan.

Pure functions; no I/O.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from ladder_core.contracts import SellFillResult, SellLevel, SellTrade
from ladder_core.numbers import as_float
from ladder_core.ordering import chronological

TOKEN_DECIMALS = 8
USD_DECIMALS = 2


def build_sell_ladder(
    baseline_price: float,
    step_pct: float,
    levels_count: int,
    sell_pct_of_remaining: float,
) -> list[SellLevel]:
    baseline_price = as_float(baseline_price)
    if baseline_price <= 0 or levels_count <= 0:
        return []
    step = 1 + as_float(step_pct) / 100
    rows: list[SellLevel] = []
    for i in range(levels_count):
        price = baseline_price * step ** (i + 1)
        rows.append(
            SellLevel(
                level=i + 1,
                target_price=round(price, 8),
                rise_pct=round((price - baseline_price) / baseline_price * 100, 4),
                sell_pct_of_remaining=as_float(sell_pct_of_remaining),
            )
        )
    return rows


def plan_sell_tokens(levels: Sequence[SellLevel], holdings: float) -> list[SellLevel]:
    """Assign planned_tokens to each level from the holdings left after the levels above it."""
    remaining = max(0.0, as_float(holdings))
    out: list[SellLevel] = []
    for lv in sorted(levels, key=lambda r: r.level):
        pct = min(100.0, max(0.0, as_float(lv.sell_pct_of_remaining)))
        tokens = remaining * pct / 100
        remaining -= tokens
        out.append(replace(lv, planned_tokens=round(tokens, TOKEN_DECIMALS)))
    return out


def compute_sell_fills(
    levels: Sequence[SellLevel],
    sells: Sequence[SellTrade],
    tolerance: float = 0.05,
) -> SellFillResult:
    """Allocate executed sells onto sell levels by token quantity.

    *tolerance* is a fraction (0.05 = 5%), matching how sell ladders are
    configured; buy-side tolerance is a percentage.
    """
    planned = [max(0.0, as_float(lv.planned_tokens)) for lv in levels]
    planned_total = sum(as_float(lv.planned_tokens) for lv in levels)

    if not levels or not sells:
        zeros = [0.0 for _ in levels]
        return SellFillResult(
            allocated_tokens=list(zeros),
            allocated_usd=list(zeros),
            fill_pct=list(zeros),
            planned_tokens_total=planned_total,
        )

    alloc_tokens = [0.0] * len(levels)
    alloc_usd = [0.0] * len(levels)
    off_plan_tokens = 0.0
    off_plan_usd = 0.0
    tol = as_float(tolerance)

    for t in chronological(sells):
        remaining = max(0.0, as_float(t.quantity))
        price = max(0.0, as_float(t.price))
        if remaining <= 0 or price <= 0:
            continue

        for i, lv in enumerate(levels):
            if remaining <= 0:
                break
            if price < as_float(lv.target_price) * (1 - tol):
                continue
            need = max(0.0, planned[i] - alloc_tokens[i])
            if need <= 0:
                continue
            take = min(remaining, need)
            alloc_tokens[i] += take
            alloc_usd[i] += take * price
            remaining -= take

        if remaining > 0:
            off_plan_tokens += remaining
            off_plan_usd += remaining * price

    allocated_tokens = [round(v, TOKEN_DECIMALS) for v in alloc_tokens]
    allocated_usd = [round(v, USD_DECIMALS) for v in alloc_usd]
    fill_pct = [
        min(1.0, tk / planned[i]) if planned[i] > 0 else 0.0
        for i, tk in enumerate(allocated_tokens)
    ]

    return SellFillResult(
        allocated_tokens=allocated_tokens,
        allocated_usd=allocated_usd,
        fill_pct=fill_pct,
        off_plan_tokens=round(off_plan_tokens, TOKEN_DECIMALS),
        off_plan_usd=round(off_plan_usd, USD_DECIMALS),
        planned_tokens_total=round(planned_total, TOKEN_DECIMALS),
        allocated_tokens_total=round(sum(allocated_tokens), TOKEN_DECIMALS),
        allocated_usd_total=round(sum(allocated_usd), USD_DECIMALS),
    )
