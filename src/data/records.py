"""
Trade / buy / sell record files: JSON -> validated ladder_core contracts.

This is the input boundary. Files are validated against a JSON Schema and
rejected with RecordsError when malformed; the core behind it only ever
sees well-typed records.

Accepted shape: a JSON list of objects, or an object with the list under
"trades" / "buys" / "sells". Buy and sell loaders also read trade files
and keep only the rows of their side.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import jsonschema

from ladder_core.contracts import Buy, SellTrade, Trade

_NUMBER = {"type": "number", "minimum": 0}
_TIMESTAMP = {"type": ["string", "null"]}

TRADE_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["side", "price", "quantity"],
        "properties": {
            "side": {"type": "string", "enum": ["buy", "sell", "BUY", "SELL"]},
            "price": _NUMBER,
            "quantity": _NUMBER,
            "fee": {"type": ["number", "null"], "minimum": 0},
            "timestamp": _TIMESTAMP,
            "trade_time": _TIMESTAMP,
        },
    },
}

BUY_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["price"],
        "anyOf": [{"required": ["qty"]}, {"required": ["quantity"]}],
        "properties": {
            "price": _NUMBER,
            "qty": _NUMBER,
            "quantity": _NUMBER,
            "fee": {"type": ["number", "null"], "minimum": 0},
            "timestamp": _TIMESTAMP,
            "trade_time": _TIMESTAMP,
        },
    },
}

SELL_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["price", "quantity"],
        "properties": {
            "price": _NUMBER,
            "quantity": _NUMBER,
            "fee": {"type": ["number", "null"], "minimum": 0},
            "timestamp": _TIMESTAMP,
            "trade_time": _TIMESTAMP,
        },
    },
}


class RecordsError(Exception):
    """Raised when a record file is missing, unparseable, or fails validation."""


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted) into an aware UTC datetime."""
    if raw is None:
        return None
    try:
        ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise RecordsError(f"Invalid timestamp {raw!r}: {exc}") from exc
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _validate(rows: Any, schema: dict[str, Any], name: str) -> None:
    try:
        jsonschema.validate(instance=rows, schema=schema)
    except jsonschema.ValidationError as exc:
        where = "/".join(str(x) for x in exc.absolute_path)
        raise RecordsError(f"{name} failed validation at [{where}]: {exc.message}") from exc


def _load(path: str | Path, key: str, schema: dict[str, Any]) -> list[dict[str, Any]]:
    p = Path(path)
    if not p.exists():
        raise RecordsError(f"Record file not found: {p}")
    try:
        with open(p, encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise RecordsError(f"{p.name} is not valid JSON: {exc}") from exc

    if isinstance(raw, dict):
        raw = raw.get(key, raw.get("trades", []))
    _validate(raw, schema, p.name)
    return raw


def _ts(rec: dict[str, Any]) -> datetime | None:
    return parse_timestamp(rec.get("timestamp") or rec.get("trade_time"))


def load_trades(path: str | Path) -> list[Trade]:
    return [
        Trade(
            side=rec["side"].lower(),
            price=float(rec["price"]),
            quantity=float(rec["quantity"]),
            fee=float(rec.get("fee") or 0.0),
            timestamp=_ts(rec),
        )
        for rec in _load(path, "trades", TRADE_SCHEMA)
    ]


def load_buys(path: str | Path) -> list[Buy]:
    """Load buy records. Accepts trade files too: sell rows are dropped."""
    p = Path(path)
    raw = _load(p, "buys", {"type": "array"})
    rows = [r for r in raw if not isinstance(r, dict) or str(r.get("side", "buy")).lower() == "buy"]
    _validate(rows, BUY_SCHEMA, p.name)
    return [
        Buy(
            price=float(rec["price"]),
            qty=float(rec["qty"] if "qty" in rec else rec["quantity"]),
            fee=float(rec.get("fee") or 0.0),
            timestamp=_ts(rec),
        )
        for rec in rows
    ]


def load_sells(path: str | Path) -> list[SellTrade]:
    p = Path(path)
    raw = _load(p, "sells", {"type": "array"})
    rows = [r for r in raw if not isinstance(r, dict) or str(r.get("side", "sell")).lower() == "sell"]
    _validate(rows, SELL_SCHEMA, p.name)
    return [
        SellTrade(
            price=float(rec["price"]),
            quantity=float(rec["quantity"]),
            fee=float(rec.get("fee") or 0.0),
            timestamp=_ts(rec),
        )
        for rec in rows
    ]
