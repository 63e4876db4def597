"""
Fetch spot prices from a market data provider. Configurable adapter; sync.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol


class PriceFetchError(Exception):
    """Raised when the provider could not be reached or answered with an error."""


class CircuitOpenError(PriceFetchError):
    """Raised when the breaker guarding the provider is open."""


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PriceQuote:
    """Sanitized spot price. Non-positive or non-finite values are None."""

    coin_id: str
    price: float | None
    pct_24h: float | None = None
    updated_at: datetime = field(default_factory=_now_utc)
    source: str = "none"

    @property
    def has_price(self) -> bool:
        return self.price is not None


class PriceFetcher(Protocol):
    """Protocol for price fetchers. Implement per provider (CoinGecko, etc.)."""

    def fetch_price(self, coin_id: str) -> PriceQuote | None:
        """Fetch the latest USD price; None when the provider has no data for *coin_id*."""
        ...


class MockPriceFetcher:
    """Returns fixed prices; for tests and when no provider is configured."""

    def __init__(self, prices: dict[str, float] | None = None) -> None:
        self._prices = {k.lower(): v for k, v in (prices or {}).items()}
        self.calls = 0

    def fetch_price(self, coin_id: str) -> PriceQuote | None:
        self.calls += 1
        price = self._prices.get(coin_id.lower())
        if price is None:
            return None
        return PriceQuote(coin_id=coin_id.lower(), price=price, source="mock")
