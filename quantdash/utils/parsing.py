"""Lenient value parsing for records delivered by the strategy service.

The service serializes decimals as strings (``"1000.50"``) while fixtures and
other callers hand over plain numbers, so every numeric field goes through
these helpers before it reaches a model. None of them raise: a value that
cannot be read becomes the documented fallback instead.

Examples::

    >>> parse_amount("1,234.50")
    1234.5
    >>> parse_amount("n/a")
    0.0
    >>> parse_optional_ratio("") is None
    True
"""
from __future__ import annotations

import math
import re
import sys
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

E = TypeVar("E", bound=Enum)

_SEPARATORS = re.compile(r"[\s_\-]+")


def parse_float(raw: Any) -> float | None:
    """Parse ``raw`` into a finite float, or return None when impossible.

    Accepts ints, floats, Decimals and numeric strings with optional thousands
    commas. Booleans, NaN and infinities are rejected.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float, Decimal)):
        try:
            value = float(raw)
        except (OverflowError, ValueError):
            return None
    elif isinstance(raw, str):
        stripped = raw.strip().replace(",", "")
        if stripped in ("", "-", "."):
            return None
        try:
            value = float(stripped)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(value):
        return None
    return value


def clamp_finite(value: float) -> float:
    """Pull an overflowed result back into the float range; NaN becomes ``0.0``."""
    if math.isnan(value):
        return 0.0
    if math.isinf(value):
        return math.copysign(sys.float_info.max, value)
    return value


def parse_amount(raw: Any) -> float:
    """Monetary amount; unreadable values count as ``0.0``."""
    value = parse_float(raw)
    return 0.0 if value is None else value


def parse_optional_ratio(raw: Any) -> float | None:
    """Optional ratio such as Sharpe; unreadable values mean "not defined"."""
    return parse_float(raw)


def parse_count(raw: Any) -> int:
    """Non-negative integer count; unreadable or negative values become ``0``."""
    value = parse_float(raw)
    if value is None or value < 0:
        return 0
    return int(value)


def parse_enum(raw: Any, enum_cls: type[E], default: E) -> E:
    """Match ``raw`` against an enum's values ignoring case and separators.

    ``"GridTrading"``, ``"grid-trading"`` and ``"GRID_TRADING"`` all match a
    member whose value is ``"grid_trading"``.
    """
    if isinstance(raw, enum_cls):
        return raw
    if not isinstance(raw, str):
        return default

    key = _compact(raw)
    for member in enum_cls:
        if _compact(str(member.value)) == key:
            return member
    return default


def _compact(text: str) -> str:
    return _SEPARATORS.sub("", text).lower()
