"""Error values for filter validation, compilation, and raw-query guarding.

Validation problems are collected as ``FieldError`` values so callers can
render per-field messages. The compiler signals failures internally with
``FilterCompilationError`` and converts them to ``FieldError`` at its public
boundary; the raw-query guard reports a single ``RawQuerySecurityError``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FilterErrorCode(str, Enum):
    """Deterministic error codes for filter engine failures."""

    # Validator
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    INCOMPATIBLE_OPERATOR = "INCOMPATIBLE_OPERATOR"
    INVALID_VALUE_ARITY = "INVALID_VALUE_ARITY"
    DUPLICATE_SORT_FIELD = "DUPLICATE_SORT_FIELD"
    STRUCTURAL_LIMIT_EXCEEDED = "STRUCTURAL_LIMIT_EXCEEDED"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    # Compiler
    VALUE_COERCION_ERROR = "VALUE_COERCION_ERROR"
    UNSUPPORTED_OPERATOR_COMBINATION = "UNSUPPORTED_OPERATOR_COMBINATION"
    # Raw query guard
    RAW_QUERY_FORBIDDEN = "RAW_QUERY_FORBIDDEN"


VALIDATOR_ERROR_CODES = frozenset({
    FilterErrorCode.UNKNOWN_FIELD,
    FilterErrorCode.INCOMPATIBLE_OPERATOR,
    FilterErrorCode.INVALID_VALUE_ARITY,
    FilterErrorCode.DUPLICATE_SORT_FIELD,
    FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED,
    FilterErrorCode.INVALID_STRUCTURE,
})

COMPILER_ERROR_CODES = frozenset({
    FilterErrorCode.VALUE_COERCION_ERROR,
    FilterErrorCode.UNSUPPORTED_OPERATOR_COMBINATION,
})


class FieldError(BaseModel):
    """A single field-level problem in a filter tree or sort list."""

    code: FilterErrorCode = Field(..., description="Error kind.")
    path: str = Field(
        default="",
        description="Location in the tree, e.g. 'children.0.children.2' or 'sort.1'.",
    )
    message: str = Field(..., description="Human-readable description.")
    field: str | None = Field(default=None, description="Offending field name.")
    operator: str | None = Field(default=None, description="Offending operator.")
    value: Any = Field(default=None, description="Offending value, if any.")


class FilterCompilationError(Exception):
    """Deterministic error raised while compiling a validated filter."""

    def __init__(
        self,
        code: FilterErrorCode,
        message: str,
        *,
        field: str | None = None,
        operator: str | None = None,
        value: Any = None,
        path: str = "",
    ) -> None:
        """Initialize with a deterministic error code and message.

        Args:
            code: The specific error code from FilterErrorCode enum.
            message: Human-readable description of the failure.
            field: Field the failing condition refers to.
            operator: Operator of the failing condition.
            value: Value that could not be compiled.
            path: Tree path of the failing condition.
        """
        self.code = code
        self.message = message
        self.field = field
        self.operator = operator
        self.value = value
        self.path = path
        super().__init__(f"[{code.value}] {message}")

    def to_field_error(self) -> FieldError:
        """Convert to a FieldError value for callers."""
        return FieldError(
            code=self.code,
            path=self.path,
            message=self.message,
            field=self.field,
            operator=self.operator,
            value=self.value,
        )


class RawQuerySecurityError(BaseModel):
    """Rejection of a raw query document by the read-only allow-list."""

    code: FilterErrorCode = FilterErrorCode.RAW_QUERY_FORBIDDEN
    key: str = Field(..., description="The rejected key.")
    path: str = Field(..., description="Dotted path of the rejected key.")
    message: str = Field(..., description="Human-readable description.")
