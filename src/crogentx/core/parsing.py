"""
Best-effort coercion of loosely typed record fields.

Records come from mock generators, an upstream HTTP API or SDK payloads. A
malformed numeric field becomes zero instead of rejecting the record.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    return d if d.is_finite() else default


def to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    d = to_decimal(value, Decimal(default))
    return int(d)


def to_float(value: Any, default: float = 0.0) -> float:
    return float(to_decimal(value, Decimal(str(default))))


def to_enum(enum_cls: Type[E], value: Any, default: Optional[E] = None) -> Optional[E]:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value))
    except ValueError:
        return default


def parse_iso_timestamp(value: str) -> int:
    """
    ISO-8601 date or datetime -> unix seconds. Naive values are taken as UTC.
    Raises ValueError on unparseable input.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())
