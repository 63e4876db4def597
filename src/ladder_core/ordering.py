"""Deterministic chronological ordering for trade-like records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, Sequence, TypeVar


class _Timestamped(Protocol):
    timestamp: datetime | None


T = TypeVar("T", bound=_Timestamped)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _sort_key(item: _Timestamped) -> tuple[int, datetime]:
    ts = getattr(item, "timestamp", None)
    if not isinstance(ts, datetime):
        return (0, _EPOCH)
    return (1, _utc(ts))


def chronological(items: Sequence[T]) -> list[T]:
    """Sort oldest first. Equal timestamps keep their input order.

    Records without a timestamp sort before every timestamped record.
    Naive datetimes are read as UTC.
    """
    return sorted(items, key=_sort_key)
