"""
CoinGecko price fetcher: implements PriceFetcher using httpx.

Sources are tried in order until one yields a price or a 24h change:
    1. simple/price        fast path, includes 24h change
    2. coins/markets       array endpoint; often answers when others lag
    3. coins/{id}          market_data detail; heavier but resilient

Each HTTP call is retried with exponential backoff (tenacity). Zero,
negative or non-finite prices are reported as None. Coins that migrated
to a new id (MATIC -> POL) are looked up under the alternate id when the
primary one yields nothing.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

from data.fetcher import PriceFetchError, PriceQuote

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"

ALT_IDS: dict[str, tuple[str, ...]] = {
    "matic-network": ("polygon-ecosystem-token",),
    "polygon-ecosystem-token": ("matic-network",),
}


def _field(obj: Any, key: str) -> Any:
    """obj[key] for a JSON object; None for anything else the provider sends."""
    return obj.get(key) if isinstance(obj, dict) else None


def _sanitize_price(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def _sanitize_pct(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


class CoinGeckoPriceFetcher:
    """
    Fetch USD spot prices from the CoinGecko public API.

    API key is optional (demo key header); typically from AppConfig,
    sourced from COINGECKO_API_KEY.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        api_key: str = "",
        timeout: float = 10.0,
        retries: int = 2,
        backoff_seconds: float = 0.14,
        client: httpx.Client | None = None,
    ) -> None:
        headers = {"accept": "application/json"}
        if api_key:
            headers["x-cg-demo-api-key"] = api_key
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers=headers,
        )
        self._retrying = Retrying(
            stop=stop_after_attempt(max(0, int(retries)) + 1),
            wait=wait_exponential(multiplier=backoff_seconds, max=5) + wait_random(0, backoff_seconds),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "CoinGeckoPriceFetcher":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        def _once() -> Any:
            r = self._client.get(path, params=params)
            r.raise_for_status()
            return r.json()

        return self._retrying.copy()(_once)

    def _from_simple(self, coin_id: str) -> PriceQuote | None:
        data = self._get_json(
            "/simple/price",
            {"ids": coin_id, "vs_currencies": "usd", "include_24hr_change": "true"},
        )
        rec = _field(data, coin_id)
        if not isinstance(rec, dict) or not rec:
            return None
        return self._quote(coin_id, rec.get("usd"), rec.get("usd_24h_change"), "coingecko_simple")

    def _from_markets_list(self, coin_id: str) -> PriceQuote | None:
        data = self._get_json(
            "/coins/markets",
            {
                "vs_currency": "usd",
                "ids": coin_id,
                "price_change_percentage": "24h",
                "per_page": 1,
                "page": 1,
                "sparkline": "false",
            },
        )
        rec = data[0] if isinstance(data, list) and data else None
        if not isinstance(rec, dict) or not rec:
            return None
        pct = rec.get("price_change_percentage_24h")
        if _sanitize_pct(pct) is None:
            pct = _field(rec.get("price_change_percentage_24h_in_currency"), "usd")
        return self._quote(coin_id, rec.get("current_price"), pct, "coingecko_markets")

    def _from_markets_detail(self, coin_id: str) -> PriceQuote | None:
        data = self._get_json(
            f"/coins/{coin_id}",
            {
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
        )
        md = _field(data, "market_data")
        if not isinstance(md, dict) or not md:
            return None
        return self._quote(
            coin_id,
            _field(md.get("current_price"), "usd"),
            md.get("price_change_percentage_24h"),
            "coingecko_markets_detail",
        )

    @staticmethod
    def _quote(coin_id: str, price: Any, pct: Any, source: str) -> PriceQuote | None:
        clean_price = _sanitize_price(price)
        clean_pct = _sanitize_pct(pct)
        if clean_price is None and clean_pct is None:
            return None
        return PriceQuote(coin_id=coin_id, price=clean_price, pct_24h=clean_pct, source=source)

    def fetch_price(self, coin_id: str) -> PriceQuote | None:
        """Try every source for *coin_id*, then its alternates.

        Returns None when the provider answered but had no usable data.
        Raises PriceFetchError when every attempt failed at the transport
        or HTTP level, so a breaker can count it as a failure.
        """
        key = coin_id.strip().lower()
        sources: tuple[Callable[[str], PriceQuote | None], ...] = (
            self._from_simple,
            self._from_markets_list,
            self._from_markets_detail,
        )
        attempts = 0
        errors: list[str] = []
        for cid in (key, *ALT_IDS.get(key, ())):
            for source in sources:
                attempts += 1
                try:
                    quote = source(cid)
                except (httpx.HTTPError, ValueError) as exc:
                    logger.debug("%s failed for %s: %s", source.__name__, cid, exc)
                    errors.append(f"{source.__name__}: {exc}")
                    continue
                if quote is not None:
                    quote.coin_id = key
                    logger.info("Fetched %s price from %s (%s)", key, quote.source, cid)
                    return quote

        if errors and len(errors) == attempts:
            raise PriceFetchError(f"All price sources failed for {key}: {errors[-1]}")
        logger.info("No price data for %s", key)
        return None
