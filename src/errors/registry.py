"""Error code registry with E-XXXX format codes.

This module defines the user-facing error codes of the filter engine,
organized into categories:
- E-2xxx: Validation errors (condition trees, sort rules, raw queries)
- E-4xxx: System/internal errors

Each error includes a code, title, message template, and remediation steps.
``ERROR_CODE_FOR_FILTER_ERROR`` maps the engine's ``FilterErrorCode`` values
onto registry codes.
"""

from dataclasses import dataclass
from enum import Enum

from src.filter_engine.models.errors import FilterErrorCode


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    VALIDATION = "validation"  # E-2xxx: Validation errors
    SYSTEM = "system"  # E-4xxx: System/internal errors


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action user should take to resolve.
    """

    code: str  # E-XXXX format
    category: ErrorCategory
    title: str  # Short title for display
    message_template: str  # Message with {placeholders}
    remediation: str  # Action user should take


# Error registry - all defined error codes
ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Filter validation errors (E-205x)
    "E-2050": ErrorCode(
        code="E-2050",
        category=ErrorCategory.VALIDATION,
        title="Unknown Filter Field",
        message_template="Field '{field}' is not available for filtering in this collection.",
        remediation="Pick a field from the field list, or remove the condition.",
    ),
    "E-2051": ErrorCode(
        code="E-2051",
        category=ErrorCategory.VALIDATION,
        title="Incompatible Operator",
        message_template="Operator '{operator}' cannot be used with field '{field}'.",
        remediation="Choose one of the operators offered for this field type.",
    ),
    "E-2052": ErrorCode(
        code="E-2052",
        category=ErrorCategory.VALIDATION,
        title="Invalid Filter Value",
        message_template="Operator '{operator}' on field '{field}' received the wrong kind of value.",
        remediation="Use a single value, a list of values for 'is one of', or no value for empty/exists checks.",
    ),
    "E-2053": ErrorCode(
        code="E-2053",
        category=ErrorCategory.VALIDATION,
        title="Duplicate Sort Field",
        message_template="Field '{field}' appears more than once in the sort rules.",
        remediation="Remove the duplicate sort rule.",
    ),
    "E-2054": ErrorCode(
        code="E-2054",
        category=ErrorCategory.VALIDATION,
        title="Filter Too Complex",
        message_template="The filter exceeds a structural limit: {message}",
        remediation="Reduce nesting depth, the number of conditions, or the size of value lists.",
    ),
    "E-2055": ErrorCode(
        code="E-2055",
        category=ErrorCategory.VALIDATION,
        title="Malformed Filter",
        message_template="The filter document is malformed: {message}",
        remediation="Rebuild the filter in the editor, or correct the stored JSON.",
    ),
    "E-2056": ErrorCode(
        code="E-2056",
        category=ErrorCategory.VALIDATION,
        title="Invalid Value For Field Type",
        message_template="Value '{value}' cannot be used with field '{field}'.",
        remediation="Enter a value matching the field type (number, date, true/false, ...).",
    ),
    "E-2057": ErrorCode(
        code="E-2057",
        category=ErrorCategory.VALIDATION,
        title="Unsupported Operator Combination",
        message_template="Operator '{operator}' is not supported for field '{field}'.",
        remediation="Validate the filter before compiling it, and use a supported operator.",
    ),
    "E-2058": ErrorCode(
        code="E-2058",
        category=ErrorCategory.VALIDATION,
        title="Raw Query Rejected",
        message_template="Raw query key '{value}' is not allowed.",
        remediation="Use only read-only query operators and plain field names.",
    ),
    # System errors (E-4xxx)
    "E-4050": ErrorCode(
        code="E-4050",
        category=ErrorCategory.SYSTEM,
        title="Invalid Filter Engine Configuration",
        message_template="Filter engine configuration is invalid: {message}",
        remediation="Check filter_engine.yaml and FILTER_ENGINE_* environment variables.",
    ),
}

ERROR_CODE_FOR_FILTER_ERROR: dict[FilterErrorCode, str] = {
    FilterErrorCode.UNKNOWN_FIELD: "E-2050",
    FilterErrorCode.INCOMPATIBLE_OPERATOR: "E-2051",
    FilterErrorCode.INVALID_VALUE_ARITY: "E-2052",
    FilterErrorCode.DUPLICATE_SORT_FIELD: "E-2053",
    FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED: "E-2054",
    FilterErrorCode.INVALID_STRUCTURE: "E-2055",
    FilterErrorCode.VALUE_COERCION_ERROR: "E-2056",
    FilterErrorCode.UNSUPPORTED_OPERATOR_COMBINATION: "E-2057",
    FilterErrorCode.RAW_QUERY_FORBIDDEN: "E-2058",
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category.

    Args:
        category: The error category to filter by.

    Returns:
        List of ErrorCode objects in the specified category.
    """
    return [e for e in ERROR_REGISTRY.values() if e.category == category]


def get_error_for_filter_code(code: FilterErrorCode) -> ErrorCode:
    """Get the registry entry for a filter engine error code."""
    return ERROR_REGISTRY[ERROR_CODE_FOR_FILTER_ERROR[code]]
