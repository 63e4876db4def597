"""Tests for JSON record loading and validation at the input boundary."""

import json
from datetime import datetime, timezone

import pytest

from data.records import RecordsError, load_buys, load_sells, load_trades, parse_timestamp


def _write(tmp_path, payload, name: str = "trades.json"):
    p = tmp_path / name
    p.write_text(json.dumps(payload))
    return p


TRADES = [
    {"side": "buy", "price": 10_000, "quantity": 1, "fee": 0, "timestamp": "2024-03-01T12:00:00Z"},
    {"side": "BUY", "price": 12_000, "quantity": 1, "timestamp": "2024-03-02T12:00:00+00:00"},
    {"side": "sell", "price": 15_000, "quantity": 1, "fee": 10, "trade_time": "2024-03-03T12:00:00"},
]


def test_load_trades(tmp_path) -> None:
    trades = load_trades(_write(tmp_path, TRADES))
    assert [t.side for t in trades] == ["buy", "buy", "sell"]
    assert trades[0].timestamp == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
    assert trades[1].fee == 0.0
    assert trades[2].fee == 10.0
    assert trades[2].timestamp == datetime(2024, 3, 3, 12, tzinfo=timezone.utc)


def test_load_trades_from_wrapped_object(tmp_path) -> None:
    trades = load_trades(_write(tmp_path, {"trades": TRADES}))
    assert len(trades) == 3


def test_load_buys_filters_sell_rows(tmp_path) -> None:
    buys = load_buys(_write(tmp_path, TRADES))
    assert [(b.price, b.qty) for b in buys] == [(10_000.0, 1.0), (12_000.0, 1.0)]


def test_load_buys_accepts_qty_field(tmp_path) -> None:
    buys = load_buys(_write(tmp_path, {"buys": [{"price": 85, "qty": 5, "fee": 25}]}, "buys.json"))
    assert buys[0].qty == 5.0
    assert buys[0].fee == 25.0


def test_load_sells_filters_buy_rows(tmp_path) -> None:
    sells = load_sells(_write(tmp_path, TRADES))
    assert len(sells) == 1
    assert sells[0].price == 15_000.0
    assert sells[0].quantity == 1.0


def test_missing_file(tmp_path) -> None:
    with pytest.raises(RecordsError, match="not found"):
        load_trades(tmp_path / "nope.json")


def test_invalid_json(tmp_path) -> None:
    p = tmp_path / "broken.json"
    p.write_text("[{")
    with pytest.raises(RecordsError, match="not valid JSON"):
        load_trades(p)


@pytest.mark.parametrize(
    "row",
    [
        {"side": "hold", "price": 1, "quantity": 1},
        {"side": "buy", "price": -1, "quantity": 1},
        {"side": "buy", "price": "ten", "quantity": 1},
        {"side": "buy", "quantity": 1},
    ],
)
def test_invalid_rows_rejected(tmp_path, row) -> None:
    with pytest.raises(RecordsError, match="failed validation"):
        load_trades(_write(tmp_path, [row]))


def test_buy_without_quantity_rejected(tmp_path) -> None:
    with pytest.raises(RecordsError):
        load_buys(_write(tmp_path, [{"price": 85}], "buys.json"))


def test_bad_timestamp_rejected(tmp_path) -> None:
    with pytest.raises(RecordsError, match="Invalid timestamp"):
        load_trades(_write(tmp_path, [{"side": "buy", "price": 1, "quantity": 1, "timestamp": "yesterday"}]))


def test_parse_timestamp_normalizes_offsets() -> None:
    assert parse_timestamp(None) is None
    assert parse_timestamp("2024-03-01T14:00:00+02:00") == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)


def test_load_buys_reads_timestamps(tmp_path) -> None:
    buys = load_buys(_write(tmp_path, [{"price": 85, "qty": 1, "trade_time": "2024-03-01T12:00:00Z"}], "buys.json"))
    assert buys[0].timestamp == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)


def test_utf8_file_loads(tmp_path) -> None:
    p = tmp_path / "trades.json"
    row = {"side": "buy", "price": 1, "quantity": 2, "note": "achat à Zürich"}
    p.write_text(json.dumps([row], ensure_ascii=False), encoding="utf-8")
    assert load_trades(p)[0].quantity == 2.0
