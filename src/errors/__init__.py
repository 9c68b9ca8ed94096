"""Error handling framework for the filter engine.

This package provides:
- Error code registry with E-XXXX format codes
- Mapping from engine-level FilterErrorCode values to registry codes
- Error formatting and grouping utilities

Error categories:
- E-2xxx: Validation errors
- E-4xxx: System/internal errors
"""

from src.errors.registry import (
    ERROR_CODE_FOR_FILTER_ERROR,
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_error_for_filter_code,
    get_errors_by_category,
)
from src.errors.formatter import (
    FilterEngineError,
    format_error,
    format_error_summary,
    group_errors,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "ERROR_CODE_FOR_FILTER_ERROR",
    "get_error",
    "get_error_for_filter_code",
    "get_errors_by_category",
    # Formatter
    "FilterEngineError",
    "format_error",
    "group_errors",
    "format_error_summary",
]
