"""
Position accounting: trade history -> position size, average cost, realized P&L.

Moving average cost basis:
    buy:  avg_cost = (avg_cost * qty_held + price * qty + fee) / (qty_held + qty)
    sell: realized_pnl += (price - avg_cost) * qty - fee

Buy fees are capitalized into the average cost; sell fees reduce realized
P&L directly. Short exposure is not tracked: when a sell takes the held
quantity to zero or below, the cost memory is reset to 0.

Pure function; no I/O. Trades are sorted by timestamp (stable) before folding.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ladder_core.contracts import FilledBuy, Position, Trade
from ladder_core.numbers import as_float, is_finite_number
from ladder_core.ordering import chronological


def _side(trade: Trade) -> str:
    side = getattr(trade.side, "value", trade.side)
    return str(side).strip().lower()


def compute_position(trades: Sequence[Trade]) -> Position:
    """Fold the full trade history into a fresh Position.

    Parameters
    ----------
    trades:
        Trades in any order. Sorted ascending by timestamp; ties keep
        input order so repeated calls give identical results.

    Returns
    -------
    Position
        All zeros for an empty history. Never raises: malformed numeric
        fields are read as 0 and trades with an unknown side are skipped.
    """
    position_qty = 0.0
    avg_cost = 0.0
    realized_pnl = 0.0
    total_fees = 0.0

    for t in chronological(trades):
        side = _side(t)
        fee = as_float(t.fee)
        qty = as_float(t.quantity)
        price = as_float(t.price)

        if side == "buy":
            total_cost = price * qty + fee
            new_qty = position_qty + qty
            avg_cost = (avg_cost * position_qty + total_cost) / new_qty if new_qty > 0 else 0.0
            position_qty = new_qty
            total_fees += fee
        elif side == "sell":
            realized_pnl += (price - avg_cost) * qty - fee
            position_qty -= qty
            total_fees += fee
            if position_qty <= 0:
                avg_cost = 0.0

    cost_basis = avg_cost * position_qty if position_qty > 0 else 0.0

    return Position(
        position_qty=position_qty,
        avg_cost=avg_cost,
        realized_pnl=realized_pnl,
        total_fees=total_fees,
        cost_basis=cost_basis,
    )


def weighted_avg_from_filled_buys(rows: Iterable[FilledBuy] | None) -> float | None:
    """Quantity-weighted average price of filled buys: sum(p*q) / sum(q).

    Rows with a missing or non-finite price, or a non-positive quantity,
    are ignored. Returns None when no row qualifies.
    """
    if not rows:
        return None

    cost = 0.0
    qty = 0.0
    for r in rows:
        if not (is_finite_number(r.price) and is_finite_number(r.filled_qty)):
            continue
        q = float(r.filled_qty)
        if q <= 0:
            continue
        cost += float(r.price) * q
        qty += q
    if qty <= 0:
        return None
    return cost / qty
