"""Compiled predicate and ordering descriptions.

The compiler emits these engine-agnostic descriptions; callers either
translate them into a concrete document-store query or evaluate them
in-process with ``src.filter_engine.evaluator``. They are frozen dataclasses
so a compiled filter can be shared freely across threads.

Operand shape follows the operator arity:
    none   -> None
    scalar -> str | int | float | bool | date | datetime | time
    array  -> frozenset of coerced scalars
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Union

from src.filter_engine.models.filter_tree import (
    FieldType,
    FilterOperator,
    SortDirection,
)

Scalar = Union[str, int, float, bool, date, datetime, time]
Operand = Union[None, Scalar, frozenset]


def _export_scalar(value: Any) -> Any:
    """Render a coerced scalar as a JSON-compatible value."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class PredicateAtom:
    """Single-field test produced from one leaf condition."""

    field: str
    field_type: FieldType
    operator: FilterOperator
    operand: Operand = None

    def to_dict(self) -> dict[str, Any]:
        """Export as a plain JSON-compatible dict."""
        data: dict[str, Any] = {
            "kind": "atom",
            "field": self.field,
            "field_type": self.field_type.value,
            "operator": self.operator.value,
        }
        if isinstance(self.operand, frozenset):
            data["operand"] = sorted(
                (_export_scalar(v) for v in self.operand), key=lambda v: (str(type(v)), str(v))
            )
        elif self.operand is not None:
            data["operand"] = _export_scalar(self.operand)
        return data


@dataclass(frozen=True)
class PredicateAll:
    """Logical AND over child predicates."""

    children: tuple[Predicate, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Export as a plain JSON-compatible dict."""
        return {"kind": "all", "children": [c.to_dict() for c in self.children]}


@dataclass(frozen=True)
class PredicateAny:
    """Logical OR over child predicates."""

    children: tuple[Predicate, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Export as a plain JSON-compatible dict."""
        return {"kind": "any", "children": [c.to_dict() for c in self.children]}


@dataclass(frozen=True)
class MatchAll:
    """Vacuously true predicate (empty group / no filter configured)."""

    def to_dict(self) -> dict[str, Any]:
        """Export as a plain JSON-compatible dict."""
        return {"kind": "match_all"}


Predicate = Union[PredicateAtom, PredicateAll, PredicateAny, MatchAll]


@dataclass(frozen=True)
class OrderingKey:
    """One compiled sort key."""

    field: str
    field_type: FieldType
    direction: SortDirection

    def to_dict(self) -> dict[str, Any]:
        """Export as a plain JSON-compatible dict."""
        return {
            "field": self.field,
            "field_type": self.field_type.value,
            "direction": self.direction.value,
        }


@dataclass(frozen=True)
class OrderingDescription:
    """Lexicographic ordering; first key is primary.

    Documents missing a sort field always sort after documents that have it,
    in either direction.
    """

    keys: tuple[OrderingKey, ...] = field(default_factory=tuple)
    missing: str = "last"

    def to_dict(self) -> dict[str, Any]:
        """Export as a plain JSON-compatible dict."""
        return {"keys": [k.to_dict() for k in self.keys], "missing": self.missing}
