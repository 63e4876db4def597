"""
Structured JSON event log for the ladder CLI.

Each event is a single JSON line on stderr (or the given stream) carrying
``ts``, ``event`` and ``coin_id`` plus event fields, so price outages and
plan runs can be grepped or shipped to a log collector as-is.

Alert events (breaker_open, price_unavailable, error) are also POSTed to
``alerting.webhook_url`` when one is configured. A failing webhook is
logged and otherwise ignored.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any, TextIO

logger = logging.getLogger("ladder.events")

ALERT_EVENTS = frozenset({"breaker_open", "price_unavailable", "error"})
WEBHOOK_TIMEOUT_SECONDS = 5


class StructuredEventLogger:
    """JSON-lines event writer bound to one coin."""

    def __init__(
        self,
        coin_id: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: TextIO | None = None,
    ) -> None:
        self._coin_id = coin_id
        self._enabled = enabled
        self._webhook = webhook_url.strip()
        self._out = stream or sys.stderr

    def _record(self, event: str, fields: dict[str, Any]) -> dict:
        return {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "coin_id": self._coin_id,
            **fields,
        }

    def _emit(self, event: str, **fields: Any) -> dict:
        record = self._record(event, fields)
        if self._enabled:
            print(json.dumps(record), file=self._out, flush=True)
        if self._webhook and event in ALERT_EVENTS:
            self._post_webhook(record)
        return record

    def _post_webhook(self, record: dict) -> None:
        body = json.dumps(record).encode("utf-8")
        req = urllib.request.Request(
            self._webhook,
            data=body,
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            urllib.request.urlopen(req, timeout=WEBHOOK_TIMEOUT_SECONDS)
        except OSError as exc:
            logger.warning("Alert webhook failed for %s: %s", record["event"], exc)

    # --- events ---

    def price_fetched(self, price: float | None, source: str) -> dict:
        return self._emit("price_fetched", price=price, source=source)

    def price_unavailable(self, reason: str, breaker_state: str) -> dict:
        return self._emit("price_unavailable", reason=reason, breaker_state=breaker_state)

    def breaker_open(self, failures: int, cooldown_ms: int) -> dict:
        return self._emit("breaker_open", failures=failures, cooldown_ms=cooldown_ms)

    def plan_built(self, levels: int, planned_usd: float, filled_usd: float, start_price: float) -> dict:
        """One line per plan render: level count, USD totals (cents) and the ladder top."""
        return self._emit(
            "plan_built",
            levels=levels,
            planned_usd=round(planned_usd, 2),
            filled_usd=round(filled_usd, 2),
            start_price=start_price,
        )

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
