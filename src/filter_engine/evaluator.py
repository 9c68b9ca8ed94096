"""In-process evaluation of compiled predicates and orderings.

``matches`` is a pure boolean function of one document: the same document
always gets the same answer, independent of iteration order or how many
documents were evaluated before it. ``sort_documents`` applies an
OrderingDescription deterministically: missing values sort last in both
directions, and remaining ties are broken by a canonical serialization of
the document rather than by input position.

Document semantics follow the document store the admin targets:
- dotted field names address nested mappings
- list values match if any element matches (multi_select membership)
- negated operators (not_equals, not_contains, not_in) match documents
  that lack the field
- ordering operators never match absent or uncoercible values
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from functools import cmp_to_key
from typing import Any

from src.filter_engine.coercion import coerce_for_field, compile_pattern
from src.filter_engine.models.filter_tree import FieldType, FilterOperator, SortDirection
from src.filter_engine.models.predicate import (
    MatchAll,
    OrderingDescription,
    OrderingKey,
    Predicate,
    PredicateAll,
    PredicateAny,
    PredicateAtom,
)

Op = FilterOperator


class _Missing:
    """Sentinel for a field absent from a document."""

    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


def resolve_field(document: Mapping[str, Any], path: str) -> Any:
    """Look up a possibly dotted field name in a document.

    A literal key equal to the full path wins over nested traversal.

    Returns:
        The value, or MISSING when any path segment is absent.
    """
    if path in document:
        return document[path]
    current: Any = document
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return MISSING
    return current


def _document_values(raw: Any, field_type: FieldType) -> list[Any]:
    """Coerce a document value into the list of comparable values it holds."""
    if raw is MISSING or raw is None:
        return []
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    values = []
    for item in items:
        try:
            values.append(coerce_for_field(field_type, item))
        except (ValueError, OverflowError):
            continue
    return values


def _is_empty_value(raw: Any) -> bool:
    """Absent, null, empty string, or empty list."""
    if raw is MISSING or raw is None:
        return True
    if isinstance(raw, str):
        return raw == ""
    if isinstance(raw, (list, tuple)):
        return len(raw) == 0
    return False


def _compare(left: Any, op: FilterOperator, right: Any) -> bool:
    try:
        if op == Op.gt:
            return left > right
        if op == Op.gte:
            return left >= right
        if op == Op.lt:
            return left < right
        if op == Op.lte:
            return left <= right
    except TypeError:
        return False
    raise ValueError(f"Not an ordering operator: {op.value}")


def _substring_match(op: FilterOperator, text: str, needle: str) -> bool:
    if op in (Op.contains, Op.not_contains):
        return needle in text
    if op == Op.starts_with:
        return text.startswith(needle)
    return text.endswith(needle)


def _match_atom(atom: PredicateAtom, document: Mapping[str, Any]) -> bool:
    """Evaluate one predicate atom against a document."""
    raw = resolve_field(document, atom.field)
    op = atom.operator

    if op == Op.exists:
        return raw is not MISSING
    if op == Op.not_exists:
        return raw is MISSING
    if op == Op.is_empty:
        return _is_empty_value(raw)
    if op == Op.is_not_empty:
        return not _is_empty_value(raw)

    values = _document_values(raw, atom.field_type)

    if op == Op.equals:
        return atom.operand in values
    if op == Op.not_equals:
        return atom.operand not in values
    if op == Op.in_:
        return any(v in atom.operand for v in values)
    if op == Op.not_in:
        return not any(v in atom.operand for v in values)
    if op in (Op.gt, Op.gte, Op.lt, Op.lte):
        return any(_compare(v, op, atom.operand) for v in values)
    if op in (Op.contains, Op.starts_with, Op.ends_with):
        return any(
            _substring_match(op, v, atom.operand) for v in values if isinstance(v, str)
        )
    if op == Op.not_contains:
        return not any(
            _substring_match(op, v, atom.operand) for v in values if isinstance(v, str)
        )
    if op == Op.regex:
        pattern = compile_pattern(atom.operand)
        return any(pattern.search(v) is not None for v in values if isinstance(v, str))
    raise ValueError(f"Unhandled operator {op.value!r}")


def matches(predicate: Predicate, document: Mapping[str, Any]) -> bool:
    """Return True if the document satisfies the predicate.

    Args:
        predicate: Compiled predicate description.
        document: One document (mapping of field name to value).

    Returns:
        Whether the document matches.
    """
    if isinstance(predicate, MatchAll):
        return True
    if isinstance(predicate, PredicateAll):
        return all(matches(child, document) for child in predicate.children)
    if isinstance(predicate, PredicateAny):
        return any(matches(child, document) for child in predicate.children)
    if isinstance(predicate, PredicateAtom):
        return _match_atom(predicate, document)
    raise TypeError(f"Unknown predicate node {type(predicate).__name__}")


def filter_documents(
    documents: Iterable[Mapping[str, Any]], predicate: Predicate
) -> list[Mapping[str, Any]]:
    """Return the matching documents, preserving input order."""
    return [doc for doc in documents if matches(predicate, doc)]


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def _sort_value(document: Mapping[str, Any], key: OrderingKey) -> Any:
    """Extract the natural-order sort value for one key, or MISSING."""
    raw = resolve_field(document, key.field)
    if raw is MISSING or raw is None:
        return MISSING
    if key.field_type == FieldType.multi_select:
        return tuple(sorted(str(v) for v in _document_values(raw, key.field_type)))
    if isinstance(raw, (list, tuple)):
        return MISSING
    try:
        return coerce_for_field(key.field_type, raw)
    except (ValueError, OverflowError):
        return MISSING


def _canonical(document: Mapping[str, Any]) -> str:
    """Stable serialization used as the final tie-breaker."""
    try:
        return json.dumps(document, sort_keys=True, default=str)
    except TypeError:
        return repr(sorted(document.items(), key=lambda item: str(item[0])))


def _cmp(left: Any, right: Any) -> int:
    if left == right:
        return 0
    try:
        return -1 if left < right else 1
    except TypeError:
        return -1 if str(left) < str(right) else 1


def sort_documents(
    documents: Iterable[Mapping[str, Any]], ordering: OrderingDescription
) -> list[Mapping[str, Any]]:
    """Sort documents lexicographically by the ordering keys.

    Args:
        documents: Documents to sort (not modified).
        ordering: Compiled ordering description.

    Returns:
        New list in sorted order. Documents missing a key's field come
        after all documents that have it, regardless of direction.
    """
    decorated = [
        (tuple(_sort_value(doc, key) for key in ordering.keys), _canonical(doc), doc)
        for doc in documents
    ]

    def compare(a: tuple, b: tuple) -> int:
        for index, key in enumerate(ordering.keys):
            left, right = a[0][index], b[0][index]
            if left is MISSING and right is MISSING:
                continue
            if left is MISSING:
                return 1
            if right is MISSING:
                return -1
            result = _cmp(left, right)
            if result:
                return -result if key.direction == SortDirection.desc else result
        return _cmp(a[1], b[1])

    return [item[2] for item in sorted(decorated, key=cmp_to_key(compare))]


def select_documents(
    documents: Iterable[Mapping[str, Any]],
    predicate: Predicate,
    ordering: OrderingDescription | None = None,
) -> list[Mapping[str, Any]]:
    """Filter then (optionally) sort documents in one call."""
    selected = filter_documents(documents, predicate)
    if ordering is None or not ordering.keys:
        return selected
    return sort_documents(selected, ordering)
