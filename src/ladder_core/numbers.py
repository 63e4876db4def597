"""Numeric coercion shared by the core. Malformed numbers degrade to zero."""

from __future__ import annotations

import math
from typing import Any


def as_float(value: Any, default: float = 0.0) -> float:
    """Return *value* as a finite float, or *default* when it is not one.

    ``None``, unparseable strings, NaN and infinities all map to *default*.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(out):
        return default
    return out


def is_finite_number(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False
