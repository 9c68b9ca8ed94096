"""Query planning: choose raw or structured mode and produce executable output.

When a filter view carries a non-empty raw query, it replaces the tree and
sort entirely: the raw query is guarded and passed through. Otherwise the
tree and sort list are validated and compiled. Either way the caller gets
one ``QueryPlan`` and never has to know which path ran.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from src.filter_engine.compiler import compile_filter
from src.filter_engine.config import DEFAULT_CONFIG, FilterEngineConfig
from src.filter_engine.models.errors import FieldError, FilterErrorCode
from src.filter_engine.models.filter_tree import (
    FilterConditionGroup,
    FilterField,
    FilterSortRule,
)
from src.filter_engine.models.filter_view import FilterView
from src.filter_engine.models.predicate import OrderingDescription, Predicate
from src.filter_engine.raw_query_guard import SafeRawQuery, guard_raw_query
from src.filter_engine.serialization import serialize_sort, serialize_tree
from src.filter_engine.validator import validate_filter, validate_filter_document

logger = logging.getLogger(__name__)

PlanMode = Literal["structured", "raw"]


@dataclass
class QueryPlan:
    """Executable form of a filter: compiled descriptions or a guarded raw query."""

    mode: PlanMode
    predicate: Predicate | None = None
    ordering: OrderingDescription | None = None
    raw_query: SafeRawQuery | None = None
    explanation: str = ""
    errors: list[FieldError] = field(default_factory=list)
    collection_id: str | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def raw_document(self) -> dict[str, Any] | None:
        """Return the raw query to execute, scoped to the plan's collection."""
        if self.raw_query is None:
            return None
        if self.collection_id:
            return self.raw_query.scoped_to(self.collection_id)
        return self.raw_query.document


def _is_model_input(conditions: Any, sort: Any) -> bool:
    if conditions is not None and not isinstance(conditions, FilterConditionGroup):
        return False
    if sort is None:
        return True
    return isinstance(sort, (list, tuple)) and all(
        isinstance(rule, FilterSortRule) for rule in sort
    )


def _as_documents(conditions: Any, sort: Any) -> tuple[Any, Any]:
    """Bring mixed model/JSON input to plain JSON for document validation."""
    if isinstance(conditions, FilterConditionGroup):
        conditions = serialize_tree(conditions)
    if isinstance(sort, (list, tuple)):
        sort = [
            serialize_sort([rule])[0] if isinstance(rule, FilterSortRule) else rule
            for rule in sort
        ]
    return conditions, sort


def plan_query(
    conditions: FilterConditionGroup | Mapping[str, Any] | None,
    sort: Sequence[FilterSortRule] | Sequence[Mapping[str, Any]] | None,
    raw_query: Mapping[str, Any] | None,
    catalog: Iterable[FilterField | Mapping[str, Any]],
    config: FilterEngineConfig | None = None,
    collection_id: str | None = None,
) -> QueryPlan:
    """Plan a query from a tree + sort list, or from a raw query.

    Args:
        conditions: Condition tree as a model or plain JSON.
        sort: Sort rules as models or plain JSON.
        raw_query: Optional raw query; when non-empty, tree and sort are
            ignored for execution.
        catalog: Filterable fields, as models or plain JSON entries.
        config: Engine configuration.
        collection_id: Collection the query runs in, if any.

    Returns:
        QueryPlan in "raw" or "structured" mode. Errors are returned in
        ``errors`` rather than raised.
    """
    config = config or DEFAULT_CONFIG
    catalog = list(catalog)

    if raw_query:
        guarded = guard_raw_query(raw_query, config)
        if not guarded.ok:
            error = guarded.error
            logger.warning("Raw query rejected: %s", error.message)
            return QueryPlan(
                mode="raw",
                errors=[
                    FieldError(
                        code=FilterErrorCode.RAW_QUERY_FORBIDDEN,
                        path=error.path,
                        message=error.message,
                        value=error.key,
                    )
                ],
                collection_id=collection_id,
            )
        logger.debug("Planned raw query")
        return QueryPlan(
            mode="raw",
            raw_query=guarded.safe_query,
            explanation="Raw query.",
            collection_id=collection_id,
        )

    if _is_model_input(conditions, sort):
        validation = validate_filter(
            conditions if conditions is not None else FilterConditionGroup(),
            sort,
            catalog,
            config,
        )
    else:
        conditions, sort = _as_documents(conditions, sort)
        validation = validate_filter_document(conditions, sort, catalog, config)

    if not validation.ok:
        return QueryPlan(
            mode="structured", errors=validation.errors, collection_id=collection_id
        )

    compiled = compile_filter(validation.validated, config)
    if not compiled.ok:
        return QueryPlan(mode="structured", errors=compiled.errors, collection_id=collection_id)

    logger.debug("Planned structured query: %s", compiled.explanation)
    return QueryPlan(
        mode="structured",
        predicate=compiled.predicate,
        ordering=compiled.ordering,
        explanation=compiled.explanation,
        collection_id=collection_id,
    )


def plan_filter_view(
    view: FilterView,
    catalog: Iterable[FilterField | Mapping[str, Any]],
    config: FilterEngineConfig | None = None,
    collection_id: str | None = None,
) -> QueryPlan:
    """Plan a saved filter view.

    Args:
        view: Saved view record.
        catalog: Filterable fields for the collection being browsed.
        config: Engine configuration.
        collection_id: Collection the view is applied in. Defaults to the
            view's own collection for collection-scoped views.

    Returns:
        QueryPlan for the view.
    """
    if collection_id is None and view.scope.kind == "collection":
        collection_id = view.scope.collection_id
    return plan_query(
        view.conditions,
        view.sort,
        view.raw_query,
        catalog,
        config=config,
        collection_id=collection_id,
    )
