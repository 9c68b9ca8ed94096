"""Tree validator: checks a condition tree and sort list against a catalog.

Validation is pure and total: it never raises for malformed input and never
mutates its arguments. Every problem is reported as a ``FieldError`` value
with a tree path, so partially edited trees can be inspected and rendered
field by field. Incompatible operators are rejected, never auto-corrected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from src.filter_engine.catalog import build_field_index, parse_catalog
from src.filter_engine.config import DEFAULT_CONFIG, FilterEngineConfig
from src.filter_engine.models.errors import FieldError, FilterErrorCode
from src.filter_engine.models.filter_tree import (
    FilterCondition,
    FilterConditionGroup,
    FilterField,
    FilterOperator,
    FilterSortRule,
    ValueArity,
)
from src.filter_engine.operators import arity_of, is_compatible
from src.filter_engine.serialization import deserialize_sort, deserialize_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedFilter:
    """A tree and sort list accepted by ``validate_filter``.

    Holds private snapshots of its inputs, so later edits to the caller's
    tree do not affect compilation. Only the validator should build these.
    """

    root: FilterConditionGroup
    sort: tuple[FilterSortRule, ...]
    fields: Mapping[str, FilterField]


@dataclass
class ValidationResult:
    """Outcome of validation: an accepted filter or a list of errors."""

    validated: ValidatedFilter | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.validated is not None and not self.errors


def _join(path: str, *parts: object) -> str:
    """Append path segments to a dotted tree path."""
    segments = [path] if path else []
    segments.extend(str(p) for p in parts)
    return ".".join(segments)


def _is_scalar(value: Any) -> bool:
    return value is not None and not isinstance(value, (list, tuple, set, frozenset, dict))


class _TreeValidator:
    """Single-use walker that accumulates errors for one validation call."""

    def __init__(self, fields: Mapping[str, FilterField], config: FilterEngineConfig) -> None:
        self.fields = fields
        self.limits = config.limits
        self.errors: list[FieldError] = []
        self.condition_count = 0

    def error(self, code: FilterErrorCode, path: str, message: str, **context: Any) -> None:
        self.errors.append(FieldError(code=code, path=path, message=message, **context))

    # -- groups -------------------------------------------------------------

    def check_group(self, group: FilterConditionGroup, depth: int, path: str) -> None:
        if depth >= self.limits.max_depth:
            self.error(
                FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED,
                path,
                f"Group nesting exceeds the maximum of {self.limits.max_depth} levels.",
            )
            return

        if group.operator not in ("and", "or"):
            self.error(
                FilterErrorCode.INVALID_STRUCTURE,
                _join(path, "operator"),
                f"Group operator must be 'and' or 'or', got {group.operator!r}.",
                operator=str(group.operator),
            )

        for index, child in enumerate(group.children):
            child_path = _join(path, "children", index)
            if isinstance(child, FilterCondition):
                self.check_condition(child, child_path)
            elif isinstance(child, FilterConditionGroup):
                self.check_group(child, depth + 1, child_path)
            else:
                self.error(
                    FilterErrorCode.INVALID_STRUCTURE,
                    child_path,
                    f"Expected a condition or group, got {type(child).__name__}.",
                )

    # -- leaves -------------------------------------------------------------

    def check_condition(self, cond: FilterCondition, path: str) -> None:
        self.condition_count += 1

        field_def = self.fields.get(cond.field) if isinstance(cond.field, str) else None
        if field_def is None:
            self.error(
                FilterErrorCode.UNKNOWN_FIELD,
                path,
                f"Field {cond.field!r} is not in the filter catalog.",
                field=str(cond.field),
            )
            return

        try:
            operator = FilterOperator(cond.operator)
        except ValueError:
            self.error(
                FilterErrorCode.INVALID_STRUCTURE,
                path,
                f"Unknown operator {cond.operator!r}.",
                field=field_def.name,
                operator=str(cond.operator),
            )
            return

        if not is_compatible(field_def.type, operator):
            self.error(
                FilterErrorCode.INCOMPATIBLE_OPERATOR,
                path,
                f"Operator {operator.value!r} cannot be used with "
                f"{field_def.type.value} field {field_def.name!r}.",
                field=field_def.name,
                operator=operator.value,
            )
            return

        self.check_arity(field_def, operator, cond.value, path)

    def check_arity(
        self, field_def: FilterField, operator: FilterOperator, value: Any, path: str
    ) -> None:
        context = {"field": field_def.name, "operator": operator.value, "value": value}
        arity = arity_of(operator)

        if arity == ValueArity.none:
            if value is not None:
                self.error(
                    FilterErrorCode.INVALID_VALUE_ARITY,
                    path,
                    f"Operator {operator.value!r} takes no value.",
                    **context,
                )
        elif arity == ValueArity.array:
            if not isinstance(value, list):
                self.error(
                    FilterErrorCode.INVALID_VALUE_ARITY,
                    path,
                    f"Operator {operator.value!r} requires a list of values.",
                    **context,
                )
            elif not all(_is_scalar(item) for item in value):
                self.error(
                    FilterErrorCode.INVALID_VALUE_ARITY,
                    path,
                    f"Operator {operator.value!r} requires a list of scalar values.",
                    **context,
                )
            elif len(value) > self.limits.max_in_values:
                self.error(
                    FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED,
                    path,
                    f"Value list has {len(value)} entries, exceeding the maximum "
                    f"of {self.limits.max_in_values}.",
                    **context,
                )
        elif not _is_scalar(value):
            self.error(
                FilterErrorCode.INVALID_VALUE_ARITY,
                path,
                f"Operator {operator.value!r} requires a single value.",
                **context,
            )

    # -- sort ---------------------------------------------------------------

    def check_sort(self, rules: Sequence[Any]) -> None:
        seen: set[str] = set()
        for index, rule in enumerate(rules):
            path = _join("sort", index)
            if not isinstance(rule, FilterSortRule):
                self.error(
                    FilterErrorCode.INVALID_STRUCTURE,
                    path,
                    f"Expected a sort rule, got {type(rule).__name__}.",
                )
                continue
            if rule.field not in self.fields:
                self.error(
                    FilterErrorCode.UNKNOWN_FIELD,
                    path,
                    f"Sort field {rule.field!r} is not in the filter catalog.",
                    field=rule.field,
                )
            elif rule.field in seen:
                self.error(
                    FilterErrorCode.DUPLICATE_SORT_FIELD,
                    path,
                    f"Field {rule.field!r} appears more than once in the sort rules.",
                    field=rule.field,
                )
            seen.add(rule.field)


def validate_filter(
    tree: FilterConditionGroup,
    sort: Sequence[FilterSortRule] | None,
    catalog: Iterable[FilterField | Mapping[str, Any]],
    config: FilterEngineConfig | None = None,
) -> ValidationResult:
    """Validate a condition tree and sort list against a field catalog.

    Args:
        tree: Root condition group.
        sort: Ordered sort rules (None is treated as empty).
        catalog: Filterable fields supplied by the surrounding system, as
            FilterField models or plain JSON entries.
        config: Engine configuration; defaults to FilterEngineConfig().

    Returns:
        ValidationResult holding a ValidatedFilter when no errors were
        found, otherwise the complete list of FieldErrors.
    """
    config = config or DEFAULT_CONFIG
    catalog_fields, catalog_errors = parse_catalog(catalog)
    fields = build_field_index(catalog_fields)
    walker = _TreeValidator(fields, config)
    walker.errors.extend(catalog_errors)

    if isinstance(tree, FilterConditionGroup):
        walker.check_group(tree, depth=0, path="")
    else:
        walker.error(
            FilterErrorCode.INVALID_STRUCTURE,
            "",
            f"Filter root must be a group, got {type(tree).__name__}.",
        )

    if walker.condition_count > config.limits.max_conditions:
        walker.error(
            FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED,
            "",
            f"Filter has {walker.condition_count} conditions, exceeding the "
            f"maximum of {config.limits.max_conditions}.",
        )

    rules = list(sort or [])
    walker.check_sort(rules)

    if walker.errors:
        logger.debug("Filter validation failed with %d error(s)", len(walker.errors))
        return ValidationResult(errors=walker.errors)

    validated = ValidatedFilter(
        root=tree.model_copy(deep=True),
        sort=tuple(rule.model_copy() for rule in rules),
        fields=dict(fields),
    )
    return ValidationResult(validated=validated)


def _structure_errors(exc: ValueError, prefix: str) -> list[FieldError]:
    """Translate a parsing failure into INVALID_STRUCTURE errors."""
    if isinstance(exc, ValidationError):
        return [
            FieldError(
                code=FilterErrorCode.INVALID_STRUCTURE,
                path=_join(prefix, *err["loc"]),
                message=err["msg"],
            )
            for err in exc.errors()
        ]
    return [FieldError(code=FilterErrorCode.INVALID_STRUCTURE, path=prefix, message=str(exc))]


def validate_filter_document(
    conditions: Any,
    sort: Any,
    catalog: Iterable[FilterField | Mapping[str, Any]],
    config: FilterEngineConfig | None = None,
) -> ValidationResult:
    """Parse stored/submitted JSON and validate it in one step.

    Malformed documents (unknown node tags, unknown operators, wrong
    container types) are reported as INVALID_STRUCTURE errors instead of
    raising.

    Args:
        conditions: Condition tree as plain JSON.
        sort: Sort rule list as plain JSON.
        catalog: Filterable fields, as models or plain JSON entries.
        config: Engine configuration.

    Returns:
        ValidationResult, as for validate_filter.
    """
    errors: list[FieldError] = []
    tree: FilterConditionGroup | None = None
    rules: list[FilterSortRule] = []

    try:
        tree = deserialize_tree(conditions)
    except ValueError as exc:
        errors.extend(_structure_errors(exc, ""))

    try:
        rules = deserialize_sort(sort, normalize=False)
    except ValueError as exc:
        errors.extend(_structure_errors(exc, "sort"))

    if tree is None:
        result = validate_filter(FilterConditionGroup(), rules, catalog, config)
        return ValidationResult(errors=errors + result.errors)

    result = validate_filter(tree, rules, catalog, config)
    if errors:
        return ValidationResult(errors=errors + result.errors)
    return result
