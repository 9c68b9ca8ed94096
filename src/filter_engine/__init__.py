"""Structured filter engine for the content admin.

Turns user-composed condition trees and sort lists into deterministic,
engine-agnostic predicate and ordering descriptions, evaluates them over
in-memory documents, and guards hand-written raw queries.

Main Entry Points:
    plan_query / plan_filter_view: Raw-or-structured planning in one call.
    validate_filter: Check a tree and sort list against a field catalog.
    compile_filter: Compile a validated filter into descriptions.
    guard_raw_query: Default-deny check for raw query documents.

Supporting Modules:
    evaluator: matches / filter_documents / sort_documents.
    serialization: Plain-JSON persistence of trees, sorts and saved views.
    catalog / operators: Field catalog and operator compatibility helpers.
"""

# Models
from src.filter_engine.models import (
    FieldError,
    FieldType,
    FilterCompilationError,
    FilterCondition,
    FilterConditionGroup,
    FilterErrorCode,
    FilterField,
    FilterOperator,
    FilterSortRule,
    FilterView,
    OrderingDescription,
    Predicate,
    RawQuerySecurityError,
    SortDirection,
)

# Configuration
from src.filter_engine.config import FilterEngineConfig, load_config

# Validation and compilation
from src.filter_engine.validator import (
    ValidatedFilter,
    ValidationResult,
    validate_filter,
    validate_filter_document,
)
from src.filter_engine.compiler import (
    CompileResult,
    compile_filter,
    compile_predicate,
    compile_sort,
    explain_predicate,
)

# Evaluation
from src.filter_engine.evaluator import (
    filter_documents,
    matches,
    select_documents,
    sort_documents,
)

# Raw queries and planning
from src.filter_engine.raw_query_guard import (
    RawQueryResult,
    SafeRawQuery,
    guard_raw_query,
)
from src.filter_engine.planner import QueryPlan, plan_filter_view, plan_query

__all__ = [
    # Models
    "FieldError",
    "FieldType",
    "FilterCompilationError",
    "FilterCondition",
    "FilterConditionGroup",
    "FilterErrorCode",
    "FilterField",
    "FilterOperator",
    "FilterSortRule",
    "FilterView",
    "OrderingDescription",
    "Predicate",
    "RawQuerySecurityError",
    "SortDirection",
    # Configuration
    "FilterEngineConfig",
    "load_config",
    # Validation and compilation
    "ValidatedFilter",
    "ValidationResult",
    "validate_filter",
    "validate_filter_document",
    "CompileResult",
    "compile_filter",
    "compile_predicate",
    "compile_sort",
    "explain_predicate",
    # Evaluation
    "matches",
    "filter_documents",
    "sort_documents",
    "select_documents",
    # Raw queries and planning
    "RawQueryResult",
    "SafeRawQuery",
    "guard_raw_query",
    "QueryPlan",
    "plan_query",
    "plan_filter_view",
]
