"""Tests for CoinGeckoPriceFetcher against an in-process httpx transport."""

import httpx
import pytest

from data.coingecko_fetcher import CoinGeckoPriceFetcher
from data.fetcher import PriceFetchError

BASE = "https://api.test/api/v3"


def _fetcher(handler, retries: int = 0) -> CoinGeckoPriceFetcher:
    client = httpx.Client(base_url=BASE, transport=httpx.MockTransport(handler))
    return CoinGeckoPriceFetcher(BASE, retries=retries, backoff_seconds=0, client=client)


def _route(request: httpx.Request) -> str:
    return request.url.path.removeprefix("/api/v3")


def test_simple_price_wins() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(_route(request))
        assert request.url.params["ids"] == "bitcoin"
        return httpx.Response(200, json={"bitcoin": {"usd": 50_000, "usd_24h_change": 1.5}})

    quote = _fetcher(handler).fetch_price("Bitcoin")
    assert quote is not None
    assert quote.coin_id == "bitcoin"
    assert quote.price == 50_000.0
    assert quote.pct_24h == 1.5
    assert quote.source == "coingecko_simple"
    assert seen == ["/simple/price"]


def test_falls_back_to_markets_and_sanitizes_price() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if _route(request) == "/simple/price":
            return httpx.Response(200, json={})
        return httpx.Response(200, json=[{"current_price": 0, "price_change_percentage_24h": -2.0}])

    quote = _fetcher(handler).fetch_price("bitcoin")
    assert quote is not None
    assert quote.price is None
    assert quote.pct_24h == -2.0
    assert quote.source == "coingecko_markets"


def test_falls_back_to_coin_detail() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        route = _route(request)
        if route == "/coins/ethereum":
            return httpx.Response(
                200,
                json={"market_data": {"current_price": {"usd": 3_000.5}, "price_change_percentage_24h": 0.2}},
            )
        if route == "/coins/markets":
            return httpx.Response(200, json=[])
        return httpx.Response(500)

    quote = _fetcher(handler).fetch_price("ethereum")
    assert quote is not None
    assert quote.price == 3_000.5
    assert quote.source == "coingecko_markets_detail"


def test_alternate_id_for_migrated_coin() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        ids = request.url.params.get("ids")
        if _route(request) == "/simple/price" and ids == "polygon-ecosystem-token":
            return httpx.Response(200, json={"polygon-ecosystem-token": {"usd": 0.42}})
        if _route(request) == "/coins/markets":
            return httpx.Response(200, json=[])
        return httpx.Response(200, json={})

    quote = _fetcher(handler).fetch_price("matic-network")
    assert quote is not None
    assert quote.coin_id == "matic-network"
    assert quote.price == 0.42


def test_no_data_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if _route(request) == "/coins/markets":
            return httpx.Response(200, json=[])
        return httpx.Response(200, json={})

    assert _fetcher(handler).fetch_price("unknown-coin") is None


def test_every_source_failing_raises() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(503)

    with pytest.raises(PriceFetchError, match="All price sources failed"):
        _fetcher(handler).fetch_price("bitcoin")
    assert calls["n"] == 3


def test_transient_error_is_retried() -> None:
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"bitcoin": {"usd": 61_000}})

    quote = _fetcher(handler, retries=1).fetch_price("bitcoin")
    assert quote is not None
    assert quote.price == 61_000.0
    assert calls["n"] == 2


def test_invalid_json_counts_as_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>rate limited</html>")

    with pytest.raises(PriceFetchError):
        _fetcher(handler).fetch_price("bitcoin")


def test_api_key_header_sent() -> None:
    fetcher = CoinGeckoPriceFetcher(BASE, api_key="demo-key")
    try:
        assert fetcher._client.headers["x-cg-demo-api-key"] == "demo-key"
    finally:
        fetcher.close()


@pytest.mark.parametrize(
    "simple_reply",
    [{"bitcoin": [1, 2]}, {"bitcoin": "50000"}, ["bitcoin"], {"bitcoin": {"usd": None}}],
)
def test_malformed_simple_reply_falls_back_to_markets(simple_reply) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if _route(request) == "/simple/price":
            return httpx.Response(200, json=simple_reply)
        return httpx.Response(200, json=[{"current_price": 50_000, "price_change_percentage_24h": 0.5}])

    quote = _fetcher(handler).fetch_price("bitcoin")
    assert quote is not None
    assert quote.price == 50_000.0
    assert quote.source == "coingecko_markets"


def test_malformed_nested_fields_yield_no_quote() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        route = _route(request)
        if route == "/simple/price":
            return httpx.Response(200, json={})
        if route == "/coins/markets":
            return httpx.Response(
                200,
                json=[{"current_price": None, "price_change_percentage_24h_in_currency": [3.0]}],
            )
        return httpx.Response(200, json={"market_data": {"current_price": 7, "price_change_percentage_24h": None}})

    # Neither markets nor detail carries a usable value; no error escapes.
    assert _fetcher(handler).fetch_price("bitcoin") is None
