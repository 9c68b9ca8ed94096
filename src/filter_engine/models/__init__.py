"""Pydantic and dataclass models for the filter engine.

This module exports the condition tree, field catalog, saved view record,
compiled predicate/ordering descriptions, and error values.
"""

from src.filter_engine.models.errors import (
    COMPILER_ERROR_CODES,
    VALIDATOR_ERROR_CODES,
    FieldError,
    FilterCompilationError,
    FilterErrorCode,
    RawQuerySecurityError,
)
from src.filter_engine.models.filter_tree import (
    FieldOption,
    FieldType,
    FilterCondition,
    FilterConditionGroup,
    FilterField,
    FilterNode,
    FilterOperator,
    FilterSortRule,
    SortDirection,
    ValueArity,
    empty_root,
)
from src.filter_engine.models.filter_view import (
    CollectionScope,
    FilterView,
    GlobalScope,
    ViewScope,
)
from src.filter_engine.models.predicate import (
    MatchAll,
    OrderingDescription,
    OrderingKey,
    Predicate,
    PredicateAll,
    PredicateAny,
    PredicateAtom,
)

__all__ = [
    # Tree models
    "FieldType",
    "FieldOption",
    "FilterField",
    "FilterOperator",
    "ValueArity",
    "SortDirection",
    "FilterCondition",
    "FilterConditionGroup",
    "FilterNode",
    "FilterSortRule",
    "empty_root",
    # Saved views
    "FilterView",
    "ViewScope",
    "GlobalScope",
    "CollectionScope",
    # Compiled descriptions
    "Predicate",
    "PredicateAtom",
    "PredicateAll",
    "PredicateAny",
    "MatchAll",
    "OrderingKey",
    "OrderingDescription",
    # Errors
    "FilterErrorCode",
    "FieldError",
    "FilterCompilationError",
    "RawQuerySecurityError",
    "VALIDATOR_ERROR_CODES",
    "COMPILER_ERROR_CODES",
]
