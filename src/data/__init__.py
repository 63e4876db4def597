"""
External collaborators: price provider adapters, the breaker that guards
them, and the JSON record loader at the input boundary.

Depends on ladder_core.contracts; no dependency from ladder_core back to data.
"""

from data.circuit_breaker import BreakerState, CircuitBreaker
from data.fetcher import CircuitOpenError, MockPriceFetcher, PriceFetcher, PriceFetchError, PriceQuote
from data.guarded import GuardedPriceFetcher
from data.records import RecordsError, load_buys, load_sells, load_trades

__all__ = [
    "BreakerState",
    "CircuitBreaker",
    "CircuitOpenError",
    "GuardedPriceFetcher",
    "load_buys",
    "load_sells",
    "load_trades",
    "MockPriceFetcher",
    "PriceFetcher",
    "PriceFetchError",
    "PriceQuote",
    "RecordsError",
]


def get_coingecko_fetcher(base_url: str, api_key: str = "", *, timeout: float = 10.0, retries: int = 2):
    """Lazy import to avoid creating an HTTP client when prices are not needed."""
    from data.coingecko_fetcher import CoinGeckoPriceFetcher

    return CoinGeckoPriceFetcher(base_url, api_key=api_key, timeout=timeout, retries=retries)
