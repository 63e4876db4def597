"""
ladder-core: pure portfolio and ladder computations.

No I/O, no network, no side effects. Consumes trades, buys and planning
parameters, produces positions and filled plan levels. Every call is
recomputed from its inputs; nothing is stored between calls.
"""

from ladder_core.accounting import compute_position, weighted_avg_from_filled_buys
from ladder_core.buy_fills import apply_buy_fills, compute_buy_fills
from ladder_core.contracts import (
    Buy,
    BuyFillResult,
    FilledBuy,
    PlanLevel,
    Position,
    SellFillResult,
    SellLevel,
    SellTrade,
    Trade,
)
from ladder_core.planner import build_plan
from ladder_core.profiles import build_weighted_plan
from ladder_core.sell_ladder import build_sell_ladder, compute_sell_fills, plan_sell_tokens
from ladder_core.touch import is_level_touched
from ladder_core.waterfall import allocate_buys_to_plan, summarize_fills

__all__ = [
    "allocate_buys_to_plan",
    "apply_buy_fills",
    "build_plan",
    "build_sell_ladder",
    "build_weighted_plan",
    "Buy",
    "BuyFillResult",
    "compute_buy_fills",
    "compute_position",
    "compute_sell_fills",
    "FilledBuy",
    "is_level_touched",
    "plan_sell_tokens",
    "PlanLevel",
    "Position",
    "SellFillResult",
    "SellLevel",
    "SellTrade",
    "summarize_fills",
    "Trade",
    "weighted_avg_from_filled_buys",
]
