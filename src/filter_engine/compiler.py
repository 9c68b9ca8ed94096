"""Query compiler: deterministic predicate and ordering generation.

Compiles a ValidatedFilter into an engine-agnostic PredicateDescription and
OrderingDescription. Guarantees: identical validated filter → identical
descriptions (children of commutative groups are canonicalized).

Compiling a tree that did not pass ``validate_filter`` is a programming
error; the compiler still re-checks operator/type compatibility and raises
``FilterCompilationError`` instead of producing a wrong predicate.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.filter_engine.coercion import coerce_for_field, coerce_text, compile_pattern
from src.filter_engine.config import DEFAULT_CONFIG, FilterEngineConfig
from src.filter_engine.models.errors import (
    FieldError,
    FilterCompilationError,
    FilterErrorCode,
)
from src.filter_engine.models.filter_tree import (
    FilterCondition,
    FilterConditionGroup,
    FilterField,
    FilterOperator,
    ValueArity,
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
from src.filter_engine.operators import (
    OPERATOR_LABELS,
    SUBSTRING_OPERATORS,
    arity_of,
    is_compatible,
)
from src.filter_engine.validator import ValidatedFilter

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Compiled predicate + ordering, or the compile error as a value."""

    predicate: Predicate | None = None
    ordering: OrderingDescription | None = None
    explanation: str = ""
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.predicate is not None and not self.errors


def compile_filter(
    validated: ValidatedFilter, config: FilterEngineConfig | None = None
) -> CompileResult:
    """Compile a validated filter, returning errors as values.

    Args:
        validated: Output of validate_filter.
        config: Engine configuration; defaults to FilterEngineConfig().

    Returns:
        CompileResult with predicate, ordering and explanation, or a single
        VALUE_COERCION_ERROR / UNSUPPORTED_OPERATOR_COMBINATION error.
    """
    try:
        predicate = compile_predicate(validated, config)
        ordering = compile_sort(validated)
    except FilterCompilationError as exc:
        logger.debug("Filter compilation failed: %s", exc)
        return CompileResult(errors=[exc.to_field_error()])
    return CompileResult(
        predicate=predicate,
        ordering=ordering,
        explanation=explain_predicate(predicate),
    )


def compile_predicate(
    validated: ValidatedFilter, config: FilterEngineConfig | None = None
) -> Predicate:
    """Compile the validated condition tree into a predicate description.

    Raises:
        FilterCompilationError: On a value the field type cannot represent
            or an operator the field type does not support.
    """
    config = config or DEFAULT_CONFIG
    return _compile_group(validated.root, validated.fields, config, path="")


def compile_sort(validated: ValidatedFilter) -> OrderingDescription:
    """Compile the validated sort rules into an ordering description.

    Raises:
        FilterCompilationError: If a sort field is missing from the catalog.
    """
    keys = []
    for index, rule in enumerate(validated.sort):
        field_def = validated.fields.get(rule.field)
        if field_def is None:
            raise FilterCompilationError(
                FilterErrorCode.UNSUPPORTED_OPERATOR_COMBINATION,
                f"Sort field {rule.field!r} is not in the filter catalog.",
                field=rule.field,
                path=f"sort.{index}",
            )
        keys.append(
            OrderingKey(field=rule.field, field_type=field_def.type, direction=rule.direction)
        )
    return OrderingDescription(keys=tuple(keys))


# ---------------------------------------------------------------------------
# Canonicalization: deterministic output for commutative groups
# ---------------------------------------------------------------------------


def _serialize_predicate(node: Predicate) -> str:
    """Serialize a predicate to a stable string for sorting."""
    return json.dumps(node.to_dict(), sort_keys=True, default=str)


# ---------------------------------------------------------------------------
# Compilation: recursive tree walk
# ---------------------------------------------------------------------------


def _compile_group(
    group: FilterConditionGroup,
    fields: Mapping[str, FilterField],
    config: FilterEngineConfig,
    path: str,
) -> Predicate:
    """Compile a group; an empty group matches unconditionally."""
    children: list[Predicate] = []
    for index, child in enumerate(group.children):
        child_path = f"{path}.children.{index}" if path else f"children.{index}"
        if isinstance(child, FilterCondition):
            children.append(_compile_condition(child, fields, config, child_path))
        elif isinstance(child, FilterConditionGroup):
            children.append(_compile_group(child, fields, config, child_path))
        else:
            raise FilterCompilationError(
                FilterErrorCode.UNSUPPORTED_OPERATOR_COMBINATION,
                f"Unexpected tree node {type(child).__name__}.",
                path=child_path,
            )

    if not children:
        return MatchAll()

    canonical = tuple(sorted(children, key=_serialize_predicate))
    if group.operator == "or":
        return PredicateAny(children=canonical)
    return PredicateAll(children=canonical)


def _compile_condition(
    cond: FilterCondition,
    fields: Mapping[str, FilterField],
    config: FilterEngineConfig,
    path: str,
) -> PredicateAtom:
    """Compile one leaf condition into a predicate atom."""
    field_def = fields.get(cond.field)
    if field_def is None:
        raise FilterCompilationError(
            FilterErrorCode.UNSUPPORTED_OPERATOR_COMBINATION,
            f"Field {cond.field!r} is not in the filter catalog.",
            field=cond.field,
            operator=cond.operator.value,
            path=path,
        )

    op = cond.operator
    if not is_compatible(field_def.type, op):
        raise FilterCompilationError(
            FilterErrorCode.UNSUPPORTED_OPERATOR_COMBINATION,
            f"Operator {op.value!r} is not supported for "
            f"{field_def.type.value} field {field_def.name!r}.",
            field=field_def.name,
            operator=op.value,
            value=cond.value,
            path=path,
        )

    arity = arity_of(op)
    if arity == ValueArity.none:
        operand: Any = None
    elif arity == ValueArity.array:
        if not isinstance(cond.value, (list, tuple)):
            raise _coercion_error(cond, field_def, path, "expected a list of values")
        operand = frozenset(_coerce_operand(cond, field_def, item, path) for item in cond.value)
    elif op == FilterOperator.regex:
        operand = _compile_regex_operand(cond, field_def, config, path)
    elif op in SUBSTRING_OPERATORS:
        try:
            operand = coerce_text(cond.value)
        except ValueError as exc:
            raise _coercion_error(cond, field_def, path, str(exc)) from exc
    else:
        operand = _coerce_operand(cond, field_def, cond.value, path)

    return PredicateAtom(
        field=field_def.name,
        field_type=field_def.type,
        operator=op,
        operand=operand,
    )


def _coerce_operand(
    cond: FilterCondition, field_def: FilterField, value: Any, path: str
) -> Any:
    """Coerce one condition value to the field's semantic type."""
    try:
        return coerce_for_field(field_def.type, value)
    except (ValueError, OverflowError) as exc:
        raise _coercion_error(cond, field_def, path, str(exc), value=value) from exc


def _compile_regex_operand(
    cond: FilterCondition,
    field_def: FilterField,
    config: FilterEngineConfig,
    path: str,
) -> str:
    """Validate a user regex pattern; the pattern string is the operand."""
    if not isinstance(cond.value, str):
        raise _coercion_error(cond, field_def, path, "regex pattern must be a string")
    max_length = config.regex.max_pattern_length
    if len(cond.value) > max_length:
        raise _coercion_error(
            cond, field_def, path, f"regex pattern exceeds {max_length} characters"
        )
    try:
        compile_pattern(cond.value)
    except ValueError as exc:
        raise _coercion_error(cond, field_def, path, str(exc)) from exc
    return cond.value


def _coercion_error(
    cond: FilterCondition,
    field_def: FilterField,
    path: str,
    reason: str,
    value: Any = None,
) -> FilterCompilationError:
    """Build a VALUE_COERCION_ERROR for a condition."""
    offending = cond.value if value is None else value
    return FilterCompilationError(
        FilterErrorCode.VALUE_COERCION_ERROR,
        f"Value {offending!r} cannot be used for {field_def.type.value} "
        f"field {field_def.name!r}: {reason}.",
        field=field_def.name,
        operator=cond.operator.value,
        value=offending,
        path=path,
    )


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------


def _explain_atom(atom: PredicateAtom) -> str:
    """Generate a human-readable label for a single predicate atom."""
    label = OPERATOR_LABELS[atom.operator].lower()
    if atom.operand is None:
        return f"{atom.field} {label}"
    if isinstance(atom.operand, frozenset):
        values = sorted(str(v) for v in atom.operand)
        return f"{atom.field} {label} [{', '.join(values)}]"
    if isinstance(atom.operand, str):
        return f"{atom.field} {label} '{atom.operand}'"
    return f"{atom.field} {label} {atom.operand}"


def _explain(node: Predicate) -> str:
    """Recursively explain a predicate, preserving AND/OR nesting."""
    if isinstance(node, PredicateAtom):
        return _explain_atom(node)
    if isinstance(node, (PredicateAll, PredicateAny)):
        parts = [p for p in (_explain(child) for child in node.children) if p]
        if not parts:
            return ""
        if len(parts) == 1:
            return parts[0]
        joiner = " AND " if isinstance(node, PredicateAll) else " OR "
        return f"({joiner.join(parts)})"
    return ""


def explain_predicate(predicate: Predicate) -> str:
    """Build a one-line, human-readable description of a predicate.

    Args:
        predicate: Compiled predicate.

    Returns:
        Explanation prefixed with 'Filter: ', or 'No filter conditions.'
        for a match-all predicate.
    """
    result = _explain(predicate)
    if not result:
        return "No filter conditions."
    # Strip outer parens on the root group
    if result.startswith("(") and result.endswith(")"):
        result = result[1:-1]
    return f"Filter: {result}."

