"""
Human-readable terminal output for positions, ladders and prices.

Every CLI command uses these formatters. Presentation only; all numbers
come from ladder_core.
"""

from __future__ import annotations

from typing import Sequence

from data.fetcher import PriceQuote
from ladder_core.contracts import PlanLevel, Position, SellFillResult, SellLevel
from ladder_core.waterfall import summarize_fills


def _fmt_usd(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _fmt_price(value: float) -> str:
    if value >= 1:
        return f"{value:,.2f}"
    return f"{value:.8f}".rstrip("0").rstrip(".")


def _bar(pct: float, width: int = 10) -> str:
    filled = int(round(max(0.0, min(1.0, pct)) * width))
    return "#" * filled + "." * (width - filled)


def format_position(pos: Position, coin_id: str, current_price: float | None = None) -> str:
    """Format a position summary; adds unrealized P&L when a price is known."""
    lines = [
        f"=== Position: {coin_id} ===",
        f"Quantity     : {pos.position_qty:,.8g}",
    ]
    if pos.is_flat:
        lines.append("Avg cost     : n/a (flat)")
    else:
        lines.append(f"Avg cost     : {_fmt_price(pos.avg_cost)}")
    lines.append(f"Cost basis   : {_fmt_usd(pos.cost_basis)}")
    lines.append(f"Realized P&L : {_fmt_usd(pos.realized_pnl)}")
    lines.append(f"Fees         : {_fmt_usd(pos.total_fees)}")
    if current_price is not None and not pos.is_flat:
        value = pos.position_qty * current_price
        lines.append(f"Market value : {_fmt_usd(value)} @ {_fmt_price(current_price)}")
        lines.append(f"Unrealized   : {_fmt_usd(value - pos.cost_basis)}")
    lines.append("===")
    return "\n".join(lines)


def format_plan(levels: Sequence[PlanLevel], start_price: float, title: str = "Buy Plan") -> str:
    """Format buy levels with fill progress."""
    if not levels:
        return f"=== {title} ===\n  No levels (start price and budget must be positive).\n==="
    lines = [
        f"=== {title} from {_fmt_price(start_price)} ===",
        f"  {'Lvl':>3}  {'Depth':>6}  {'Price':>14}  {'Planned':>12}  {'Filled':>12}  Progress",
    ]
    for lv in levels:
        lines.append(
            f"  {lv.level:>3}  {lv.depth_pct:>5.1f}%  {_fmt_price(lv.price):>14}  "
            f"{_fmt_usd(lv.planned_usd):>12}  {_fmt_usd(lv.filled_usd):>12}  "
            f"[{_bar(lv.filled_pct)}] {lv.filled_pct:.0%}"
        )
    summary = summarize_fills(levels)
    lines.append("")
    lines.append(
        f"  Total planned {_fmt_usd(summary.planned_total)}  "
        f"filled {_fmt_usd(summary.filled_total)} ({summary.fill_ratio:.0%})"
    )
    lines.append("===")
    return "\n".join(lines)


def format_sell_plan(levels: Sequence[SellLevel], fills: SellFillResult | None = None) -> str:
    if not levels:
        return "=== Sell Plan ===\n  No levels (baseline price and level count must be positive).\n==="
    lines = [
        "=== Sell Plan ===",
        f"  {'Lvl':>3}  {'Rise':>8}  {'Target':>14}  {'Sell %':>6}  {'Tokens':>14}  Filled",
    ]
    for i, lv in enumerate(levels):
        pct = fills.fill_pct[i] if fills and i < len(fills.fill_pct) else 0.0
        lines.append(
            f"  {lv.level:>3}  {lv.rise_pct:>7.1f}%  {_fmt_price(lv.target_price):>14}  "
            f"{lv.sell_pct_of_remaining:>5.1f}%  {lv.planned_tokens:>14,.6f}  [{_bar(pct)}] {pct:.0%}"
        )
    if fills:
        lines.append("")
        lines.append(
            f"  Sold on plan {fills.allocated_tokens_total:,.6f} tokens ({_fmt_usd(fills.allocated_usd_total)})"
        )
        if fills.off_plan_tokens > 0:
            lines.append(f"  Off plan     {fills.off_plan_tokens:,.6f} tokens ({_fmt_usd(fills.off_plan_usd)})")
    lines.append("===")
    return "\n".join(lines)


def format_price(quote: PriceQuote) -> str:
    if quote.price is None:
        return f"{quote.coin_id}: no price available (source: {quote.source})"
    change = f"  24h {quote.pct_24h:+.2f}%" if quote.pct_24h is not None else ""
    return f"{quote.coin_id}: {_fmt_price(quote.price)} USD{change}  (source: {quote.source})"
