"""
Data contracts for ladder-core: Trade, Position, PlanLevel, Buy, sell ladder rows.

Plain frozen dataclasses. Inputs come from a persistence collaborator,
outputs go to presentation/export collaborators. No I/O here.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Trade:
    """One executed trade. Accounting uses only these fields."""

    side: str  # "buy" | "sell"
    price: float
    quantity: float
    fee: float = 0.0
    timestamp: datetime | None = None


@dataclass(frozen=True)
class Position:
    """Derived position summary. Recomputed from the full trade list on every call."""

    position_qty: float = 0.0
    avg_cost: float = 0.0
    realized_pnl: float = 0.0
    total_fees: float = 0.0
    cost_basis: float = 0.0

    @property
    def is_flat(self) -> bool:
        return self.position_qty <= 0


@dataclass(frozen=True)
class PlanLevel:
    """One rung of a buy ladder. level 1 is the shallowest (highest price)."""

    level: int
    depth_pct: float
    price: float
    planned_usd: float
    filled_usd: float = 0.0
    filled_pct: float = 0.0

    @property
    def remaining_usd(self) -> float:
        return max(0.0, self.planned_usd - self.filled_usd)


@dataclass(frozen=True)
class Buy:
    """Executed buy order fed to the buy fill allocators."""

    price: float
    qty: float
    fee: float = 0.0
    timestamp: datetime | None = None


@dataclass(frozen=True)
class FilledBuy:
    """Buy row with possibly missing fields, as read from storage."""

    price: float | None
    filled_qty: float | None


@dataclass(frozen=True)
class SellLevel:
    """One rung of a sell ladder, above the baseline price."""

    level: int
    target_price: float
    rise_pct: float
    sell_pct_of_remaining: float
    planned_tokens: float = 0.0


@dataclass(frozen=True)
class SellTrade:
    price: float
    quantity: float
    fee: float = 0.0
    timestamp: datetime | None = None


@dataclass(frozen=True)
class SellFillResult:
    """Per-level sell fill state plus off-plan overflow."""

    allocated_tokens: list[float] = field(default_factory=list)
    allocated_usd: list[float] = field(default_factory=list)
    fill_pct: list[float] = field(default_factory=list)
    off_plan_tokens: float = 0.0
    off_plan_usd: float = 0.0
    planned_tokens_total: float = 0.0
    allocated_tokens_total: float = 0.0
    allocated_usd_total: float = 0.0


@dataclass(frozen=True)
class BuyFillResult:
    """USD fill per buy level under the average-cost cap, plus what the ladder could not use."""

    allocated_usd: list[float] = field(default_factory=list)
    fill_pct: list[float] = field(default_factory=list)
    off_plan_usd: float = 0.0
    planned_total: float = 0.0
    allocated_total: float = 0.0
