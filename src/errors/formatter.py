"""Error formatting and grouping utilities.

This module provides:
- FilterEngineError exception class for user-facing filter errors
- Error formatting for user display
- Error grouping to combine duplicates across tree paths
"""

from dataclasses import dataclass, field

from src.errors.registry import ERROR_CODE_FOR_FILTER_ERROR, get_error
from src.filter_engine.models.errors import FieldError, RawQuerySecurityError


@dataclass
class FilterEngineError(Exception):
    """User-facing filter error with code, message, and context.

    Attributes:
        code: Error code in E-XXXX format.
        message: Human-readable error message.
        remediation: Action user should take to resolve.
        paths: Affected tree paths (e.g. 'children.0', 'sort.1').
        field_name: Affected field name, if applicable.
        details: Additional context dictionary.
    """

    code: str
    message: str
    remediation: str
    paths: list[str] = field(default_factory=list)  # Affected tree paths
    field_name: str | None = None  # Affected field name
    details: dict = field(default_factory=dict)  # Additional context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code}: {self.message}"

    @classmethod
    def from_code(cls, code: str, **kwargs: object) -> "FilterEngineError":
        """Create error from registry code with context substitution.

        Args:
            code: Error code in E-XXXX format.
            **kwargs: Context values for message template substitution.
                Special keys 'paths' and 'details' are used for
                FilterEngineError fields rather than message substitution.

        Returns:
            FilterEngineError instance with formatted message.
        """
        error_def = get_error(code)
        if not error_def:
            return cls(
                code=code,
                message=f"Unknown error: {code}",
                remediation="Contact support.",
                paths=kwargs.get("paths", []),  # type: ignore[arg-type]
                field_name=kwargs.get("field"),  # type: ignore[arg-type]
                details=kwargs.get("details", {}),  # type: ignore[arg-type]
            )

        # Format message with provided context
        message = error_def.message_template
        try:
            template_kwargs = {
                k: v for k, v in kwargs.items() if k not in ("paths", "details")
            }
            message = message.format(**template_kwargs)
        except KeyError:
            # Keep template if some placeholders are missing
            pass

        paths = kwargs.get("paths", [])
        if not isinstance(paths, list):
            paths = []
        field_name = kwargs.get("field")
        if not isinstance(field_name, str):
            field_name = None
        details = kwargs.get("details", {})
        if not isinstance(details, dict):
            details = {}

        return cls(
            code=error_def.code,
            message=message,
            remediation=error_def.remediation,
            paths=paths,
            field_name=field_name,
            details=details,
        )

    @classmethod
    def from_field_error(cls, error: FieldError) -> "FilterEngineError":
        """Create a user-facing error from a validator/compiler FieldError.

        Args:
            error: FieldError value returned by the engine.

        Returns:
            FilterEngineError whose details keep the engine-level code and
            message.
        """
        return cls.from_code(
            ERROR_CODE_FOR_FILTER_ERROR[error.code],
            field=error.field,
            operator=error.operator,
            value=error.value,
            message=error.message,
            paths=[error.path],
            details={"filter_code": error.code.value, "engine_message": error.message},
        )

    @classmethod
    def from_raw_query_error(cls, error: RawQuerySecurityError) -> "FilterEngineError":
        """Create a user-facing error from a raw query rejection."""
        return cls.from_code(
            ERROR_CODE_FOR_FILTER_ERROR[error.code],
            value=error.key,
            message=error.message,
            paths=[error.path],
            details={"filter_code": error.code.value, "engine_message": error.message},
        )


def format_error(error: FilterEngineError, include_remediation: bool = True) -> str:
    """Format error for display to user.

    Args:
        error: The FilterEngineError to format.
        include_remediation: Whether to include remediation steps.

    Returns:
        Multi-line formatted string suitable for user display.
    """
    lines = [f"{error.code}: {error.message}"]

    # Root-level errors have an empty path
    shown = [p or "(root)" for p in error.paths]
    if shown:
        if len(shown) == 1:
            lines.append(f"  Location: {shown[0]}")
        else:
            paths_str = ", ".join(shown[:10])
            if len(shown) > 10:
                paths_str += f" (and {len(shown) - 10} more)"
            lines.append(f"  Locations: {paths_str}")

    if error.field_name:
        lines.append(f"  Field: {error.field_name}")

    if include_remediation:
        lines.append(f"  Action: {error.remediation}")

    return "\n".join(lines)


def group_errors(errors: list[FilterEngineError]) -> list[FilterEngineError]:
    """Group errors by code and message, combining tree paths.

    The same error reported at several places in a tree is combined into
    a single error listing every affected path.

    Example:
        3 identical "Unknown Filter Field" errors at children.0, children.2
        and sort.0 -> 1 error with paths=['children.0', 'children.2', 'sort.0']

    Args:
        errors: List of FilterEngineError objects to group.

    Returns:
        List of grouped FilterEngineError objects with combined paths.
    """
    groups: dict[str, FilterEngineError] = {}

    for error in errors:
        key = f"{error.code}|{error.message}|{error.field_name or ''}"

        if key in groups:
            groups[key].paths.extend(error.paths)
        else:
            groups[key] = FilterEngineError(
                code=error.code,
                message=error.message,
                remediation=error.remediation,
                paths=list(error.paths),  # Copy to avoid mutation
                field_name=error.field_name,
                details=error.details.copy(),
            )

    result = list(groups.values())
    for error in result:
        error.paths = sorted(set(error.paths))

    return result


def format_error_summary(errors: list[FilterEngineError]) -> str:
    """Format a list of errors for display, grouping duplicates.

    Args:
        errors: List of FilterEngineError objects.

    Returns:
        User-friendly summary suitable for UI display.
    """
    if not errors:
        return "No errors."

    grouped = group_errors(errors)

    if len(grouped) == 1:
        return format_error(grouped[0])

    lines = [f"{len(grouped)} error type(s) found:\n"]
    for i, error in enumerate(grouped, 1):
        lines.append(f"{i}. {format_error(error)}")
        lines.append("")  # Blank line between errors

    return "\n".join(lines)
