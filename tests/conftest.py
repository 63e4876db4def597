"""Pytest fixtures: trade histories, plans and a controllable clock for deterministic tests."""

from datetime import datetime, timezone

import pytest

from ladder_core.contracts import PlanLevel, Trade


def _ts(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock stand-in; seconds, advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=1_000.0)


@pytest.fixture
def round_trip_trades() -> list[Trade]:
    """Two buys then two sells that close the position. Given out of order on purpose."""
    return [
        Trade("sell", 9_000.0, 1.0, 0.0, _ts(2024, 3, 4)),
        Trade("buy", 10_000.0, 1.0, 0.0, _ts(2024, 3, 1)),
        Trade("sell", 15_000.0, 1.0, 10.0, _ts(2024, 3, 3)),
        Trade("buy", 12_000.0, 1.0, 0.0, _ts(2024, 3, 2)),
    ]


@pytest.fixture
def three_levels() -> list[PlanLevel]:
    """Levels at 90 / 80 / 70 with 300 USD each (start 100, budget 900, step 10, depth 30)."""
    return [
        PlanLevel(level=1, depth_pct=10.0, price=90.0, planned_usd=300.0),
        PlanLevel(level=2, depth_pct=20.0, price=80.0, planned_usd=300.0),
        PlanLevel(level=3, depth_pct=30.0, price=70.0, planned_usd=300.0),
    ]
