"""Deterministic value coercion by semantic field type.

Both sides of a comparison go through these helpers: the compiler coerces
condition values (and reports failures as compile errors), the evaluator
coerces document values (and treats failures as non-matching). Every
helper raises ``ValueError`` on failure.

Temporal rules:
- date:     ISO-8601 date or datetime string -> ``date``
- datetime: ISO-8601 string -> timezone-aware ``datetime`` (naive = UTC)
- time:     ``HH:MM[:SS[.ffffff]]`` -> naive ``time``
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from decimal import Decimal
from functools import lru_cache
from typing import Any

import re2
from dateutil.parser import isoparse, isoparser

from src.filter_engine.models.filter_tree import FieldType

_TIME_PARSER = isoparser()

_TEXT_COERCED_TYPES = frozenset({
    FieldType.text,
    FieldType.textarea,
    FieldType.email,
    FieldType.url,
    FieldType.select,
    FieldType.multi_select,
})


def coerce_number(value: Any) -> int | float:
    """Coerce a literal to a finite int or float. Booleans are rejected."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        result = float(value)
    elif isinstance(value, str):
        normalized = value.strip()
        if not normalized:
            raise ValueError("empty string is not a number")
        try:
            return int(normalized)
        except ValueError:
            result = float(normalized)
    else:
        raise ValueError(f"{type(value).__name__} is not a number")
    if not math.isfinite(result):
        raise ValueError("number must be finite")
    if result.is_integer() and isinstance(value, str):
        return int(result)
    return result


def coerce_boolean(value: Any) -> bool:
    """Coerce native booleans and the literal strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise ValueError(f"{value!r} is not a boolean")


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def coerce_datetime(value: Any) -> datetime:
    """Coerce to a timezone-aware instant; naive values are taken as UTC."""
    if isinstance(value, datetime):
        return _as_aware(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        return _as_aware(isoparse(value.strip()))
    raise ValueError(f"{value!r} is not an ISO-8601 datetime")


def coerce_date(value: Any) -> date:
    """Coerce to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        return isoparse(value.strip()).date()
    raise ValueError(f"{value!r} is not an ISO-8601 date")


def coerce_time(value: Any) -> time:
    """Coerce to a naive time of day."""
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if isinstance(value, str) and value.strip():
        return _TIME_PARSER.parse_isotime(value.strip()).replace(tzinfo=None)
    raise ValueError(f"{value!r} is not an ISO-8601 time")


def coerce_text(value: Any) -> str:
    """Coerce to text; numbers are rendered, other types rejected."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"{type(value).__name__} is not text")


def coerce_for_field(field_type: FieldType, value: Any) -> Any:
    """Coerce a scalar to the natural Python type of a field type.

    Args:
        field_type: Semantic field type.
        value: Raw scalar (condition literal or document value).

    Returns:
        Coerced, hashable, comparable value.

    Raises:
        ValueError: If the value cannot represent the field type.
    """
    if field_type in _TEXT_COERCED_TYPES:
        return coerce_text(value)
    if field_type == FieldType.number:
        return coerce_number(value)
    if field_type == FieldType.boolean:
        return coerce_boolean(value)
    if field_type == FieldType.date:
        return coerce_date(value)
    if field_type == FieldType.datetime:
        return coerce_datetime(value)
    if field_type == FieldType.time:
        return coerce_time(value)
    raise ValueError(f"Unsupported field type {field_type!r}")


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Any:
    """Compile a user regex with RE2 (linear-time, no backtracking).

    Raises:
        ValueError: If RE2 rejects the pattern.
    """
    try:
        return re2.compile(pattern)
    except re2.error as exc:
        raise ValueError(f"invalid regular expression: {exc}") from exc
