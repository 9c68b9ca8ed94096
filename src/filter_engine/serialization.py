"""Plain-JSON serialization for condition trees, sort lists, and saved views.

The Saved View Store persists filter views as plain JSON documents. These
functions convert between that stored representation and the engine
models. Deserialization normalizes legacy and hand-edited records the same
way the admin backend always has:

- missing/empty conditions become an empty AND root group
- a bare condition at the root is wrapped in an AND group
- sort rules without a field are dropped; unknown directions become "asc"
- an empty raw query (``{}``) is stored as ``None``

For any tree accepted by the validator,
``deserialize_tree(serialize_tree(tree)) == tree``.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic_core import to_jsonable_python

from src.filter_engine.models.filter_tree import (
    FilterCondition,
    FilterConditionGroup,
    FilterSortRule,
    SortDirection,
    empty_root,
)
from src.filter_engine.models.filter_view import (
    CollectionScope,
    FilterView,
    GlobalScope,
)

_VALID_DIRECTIONS = {d.value for d in SortDirection}


# ---------------------------------------------------------------------------
# Condition tree
# ---------------------------------------------------------------------------


def _serialize_node(node: FilterCondition | FilterConditionGroup) -> dict[str, Any]:
    """Serialize one tree node (recursively for groups)."""
    if isinstance(node, FilterCondition):
        data: dict[str, Any] = {
            "type": "condition",
            "field": node.field,
            "operator": node.operator.value,
        }
        if node.value is not None:
            data["value"] = to_jsonable_python(node.value)
        return data
    if isinstance(node, FilterConditionGroup):
        return {
            "type": "group",
            "operator": node.operator,
            "children": [_serialize_node(child) for child in node.children],
        }
    raise TypeError(f"Cannot serialize tree node of type {type(node).__name__}")


def serialize_tree(tree: FilterConditionGroup) -> dict[str, Any]:
    """Serialize a condition tree to its stored JSON representation.

    Args:
        tree: Root condition group.

    Returns:
        JSON-compatible dict. Conditions without a value omit the
        ``value`` key.
    """
    return _serialize_node(tree)


def deserialize_tree(
    document: Mapping[str, Any] | None, normalize: bool = True
) -> FilterConditionGroup:
    """Rebuild a condition tree from its stored JSON representation.

    Args:
        document: Stored tree document (or None).
        normalize: Apply legacy-record normalization (see module docstring).

    Returns:
        Root FilterConditionGroup. The input document is not referenced by
        the result.

    Raises:
        ValueError: If the document is not a mapping or fails model
            validation (pydantic.ValidationError is a ValueError).
    """
    if document is None or (isinstance(document, Mapping) and not document):
        return empty_root()
    if not isinstance(document, Mapping):
        raise ValueError(
            f"Condition tree must be a JSON object, got {type(document).__name__}"
        )

    data = copy.deepcopy(dict(document))
    if normalize:
        node_type = data.get("type")
        if node_type is None:
            if "children" not in data:
                return empty_root()
            data["type"] = "group"
        elif node_type == "condition":
            data = {"type": "group", "operator": "and", "children": [data]}

    return FilterConditionGroup.model_validate(data)


# ---------------------------------------------------------------------------
# Sort rules
# ---------------------------------------------------------------------------


def serialize_sort(rules: Sequence[FilterSortRule]) -> list[dict[str, str]]:
    """Serialize a sort rule list to plain JSON."""
    return [{"field": rule.field, "direction": rule.direction.value} for rule in rules]


def deserialize_sort(
    document: Sequence[Any] | None, normalize: bool = True
) -> list[FilterSortRule]:
    """Rebuild a sort rule list from plain JSON.

    Args:
        document: Stored list of ``{field, direction}`` objects (or None).
        normalize: Drop malformed rules and default unknown directions.

    Returns:
        Ordered list of FilterSortRule. Duplicate fields are preserved;
        rejecting them is the validator's job.

    Raises:
        ValueError: If the document is not a list, or (without
            normalization) a rule is malformed.
    """
    if document is None:
        return []
    if isinstance(document, (str, bytes)) or not isinstance(document, Sequence):
        raise ValueError(f"Sort rules must be a JSON array, got {type(document).__name__}")

    rules: list[FilterSortRule] = []
    for item in document:
        if normalize:
            if not isinstance(item, Mapping) or not item.get("field"):
                continue
            direction = item.get("direction", "asc")
            if not isinstance(direction, str) or direction not in _VALID_DIRECTIONS:
                direction = "asc"
            rules.append(FilterSortRule(field=item["field"], direction=direction))
        else:
            rules.append(FilterSortRule.model_validate(item))
    return rules


# ---------------------------------------------------------------------------
# Raw query
# ---------------------------------------------------------------------------


def serialize_raw_query(raw_query: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Serialize a raw query; empty queries are stored as None."""
    if not raw_query:
        return None
    return to_jsonable_python(copy.deepcopy(dict(raw_query)))


def deserialize_raw_query(document: Any) -> dict[str, Any] | None:
    """Rebuild a raw query from storage; empty or missing becomes None.

    Raises:
        ValueError: If a non-empty stored raw query is not a JSON object.
    """
    if document is None or (isinstance(document, (Mapping, list)) and not document):
        return None
    if not isinstance(document, Mapping):
        raise ValueError(f"Raw query must be a JSON object, got {type(document).__name__}")
    return copy.deepcopy(dict(document))


# ---------------------------------------------------------------------------
# Saved views
# ---------------------------------------------------------------------------


def filter_view_to_record(view: FilterView) -> dict[str, Any]:
    """Serialize a FilterView to the record stored by the Saved View Store."""
    return {
        "id": view.id,
        "name": view.name,
        "slug": view.slug,
        "description": view.description,
        "scope": view.scope.model_dump(),
        "conditions": serialize_tree(view.conditions),
        "sort": serialize_sort(view.sort),
        "raw_query": serialize_raw_query(view.raw_query),
        "is_system": view.is_system,
    }


def _scope_from_record(record: Mapping[str, Any]) -> GlobalScope | CollectionScope:
    """Resolve the explicit scope, migrating legacy ``collection_id`` records."""
    scope = record.get("scope")
    if isinstance(scope, Mapping):
        if scope.get("kind") == "collection":
            return CollectionScope.model_validate(scope)
        return GlobalScope()
    collection_id = record.get("collection_id")
    if collection_id:
        return CollectionScope(collection_id=str(collection_id))
    return GlobalScope()


def filter_view_from_record(record: Mapping[str, Any]) -> FilterView:
    """Rebuild a FilterView from a stored record.

    Args:
        record: Stored view document. Accepts ``_id`` for ``id`` and a
            legacy top-level ``collection_id`` when no ``scope`` is stored.

    Returns:
        Normalized FilterView.

    Raises:
        ValueError: If the conditions, sort or raw query are malformed.
    """
    record_id = record.get("id", record.get("_id"))
    return FilterView(
        id=str(record_id) if record_id is not None else None,
        name=record.get("name") or "Unnamed Filter",
        slug=record.get("slug"),
        description=record.get("description"),
        scope=_scope_from_record(record),
        conditions=deserialize_tree(record.get("conditions")),
        sort=deserialize_sort(record.get("sort")),
        raw_query=deserialize_raw_query(record.get("raw_query")),
        is_system=bool(record.get("is_system", False)),
    )
