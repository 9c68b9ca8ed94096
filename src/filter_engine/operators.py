"""Static operator table: arity, labels, and field-type compatibility.

Every field type maps to an ordered, non-empty tuple of permitted
operators. The first entry is the operator the admin UI falls back to when
a condition's field changes to an incompatible type.
"""

from __future__ import annotations

from src.filter_engine.models.filter_tree import (
    FieldType,
    FilterCondition,
    FilterField,
    FilterOperator,
    ValueArity,
)

Op = FilterOperator

# ---------------------------------------------------------------------------
# Arity and labels
# ---------------------------------------------------------------------------

NO_VALUE_OPERATORS = frozenset({Op.exists, Op.not_exists, Op.is_empty, Op.is_not_empty})
ARRAY_VALUE_OPERATORS = frozenset({Op.in_, Op.not_in})

# Operators that require numeric or temporal fields (ordering comparisons)
ORDERING_OPERATORS = frozenset({Op.gt, Op.gte, Op.lt, Op.lte})

# Operators that require text fields (literal substring matching)
SUBSTRING_OPERATORS = frozenset({Op.contains, Op.not_contains, Op.starts_with, Op.ends_with})

OPERATOR_LABELS: dict[FilterOperator, str] = {
    Op.equals: "Equals",
    Op.not_equals: "Not equals",
    Op.contains: "Contains",
    Op.not_contains: "Does not contain",
    Op.starts_with: "Starts with",
    Op.ends_with: "Ends with",
    Op.in_: "Is one of",
    Op.not_in: "Is not one of",
    Op.gt: "Greater than",
    Op.gte: "Greater than or equal",
    Op.lt: "Less than",
    Op.lte: "Less than or equal",
    Op.exists: "Exists",
    Op.not_exists: "Does not exist",
    Op.regex: "Matches regex",
    Op.is_empty: "Is empty",
    Op.is_not_empty: "Is not empty",
}


def arity_of(operator: FilterOperator) -> ValueArity:
    """Return the value arity an operator requires."""
    if operator in NO_VALUE_OPERATORS:
        return ValueArity.none
    if operator in ARRAY_VALUE_OPERATORS:
        return ValueArity.array
    return ValueArity.scalar


# ---------------------------------------------------------------------------
# Compatibility matrix
# ---------------------------------------------------------------------------

_TEXT_LIKE_OPS = (
    Op.equals, Op.not_equals,
    Op.contains, Op.not_contains, Op.starts_with, Op.ends_with,
    Op.is_empty, Op.is_not_empty,
    Op.exists, Op.not_exists,
)

_TEMPORAL_OPS = (
    Op.equals, Op.not_equals,
    Op.gt, Op.gte, Op.lt, Op.lte,
    Op.exists, Op.not_exists,
)

_CHOICE_OPS = (
    Op.equals, Op.not_equals,
    Op.in_, Op.not_in,
    Op.is_empty, Op.is_not_empty,
    Op.exists, Op.not_exists,
)

COMPATIBILITY: dict[FieldType, tuple[FilterOperator, ...]] = {
    FieldType.text: (
        Op.equals, Op.not_equals,
        Op.contains, Op.not_contains, Op.starts_with, Op.ends_with,
        Op.in_, Op.not_in,
        Op.regex,
        Op.is_empty, Op.is_not_empty,
        Op.exists, Op.not_exists,
    ),
    FieldType.textarea: _TEXT_LIKE_OPS,
    FieldType.email: _TEXT_LIKE_OPS,
    FieldType.url: _TEXT_LIKE_OPS,
    FieldType.number: (
        Op.equals, Op.not_equals,
        Op.gt, Op.gte, Op.lt, Op.lte,
        Op.in_, Op.not_in,
        Op.exists, Op.not_exists,
    ),
    FieldType.boolean: (Op.equals, Op.not_equals, Op.exists, Op.not_exists),
    FieldType.date: _TEMPORAL_OPS,
    FieldType.datetime: _TEMPORAL_OPS,
    FieldType.time: _TEMPORAL_OPS,
    FieldType.select: _CHOICE_OPS,
    FieldType.multi_select: _CHOICE_OPS,
}

TEXT_TYPES = frozenset({FieldType.text, FieldType.textarea, FieldType.email, FieldType.url})
TEMPORAL_TYPES = frozenset({FieldType.date, FieldType.datetime, FieldType.time})


def operators_for(field_type: FieldType) -> tuple[FilterOperator, ...]:
    """Return the ordered operators permitted for a field type."""
    return COMPATIBILITY[field_type]


def is_compatible(field_type: FieldType, operator: FilterOperator) -> bool:
    """Return True if the operator may be applied to the field type."""
    return operator in COMPATIBILITY[field_type]


def operators_for_type(field_type: FieldType | str) -> list[dict[str, str]]:
    """List operators for a field type as ``{value, label}`` pairs.

    Unknown type names fall back to the ``text`` operator set, matching the
    admin UI picker.

    Args:
        field_type: FieldType member or its string value.

    Returns:
        Ordered list of operator descriptors for UI pickers.
    """
    try:
        resolved = FieldType(field_type)
    except ValueError:
        resolved = FieldType.text
    return [
        {"value": op.value, "label": OPERATOR_LABELS[op]}
        for op in COMPATIBILITY[resolved]
    ]


def default_operator_for(field_type: FieldType) -> FilterOperator:
    """Return the first compatible operator for a field type."""
    return COMPATIBILITY[field_type][0]


def realign_condition(condition: FilterCondition, field: FilterField) -> FilterCondition:
    """Re-target a condition at a (new) field, auto-correcting the operator.

    This is the admin UI convenience applied while editing: an operator
    that the new field type does not permit is replaced by the type's
    default operator, and the value is reset when the arity changes. The
    tree validator never applies this; it rejects incompatible operators.

    Args:
        condition: The condition being edited.
        field: Catalog entry of the field the condition now targets.

    Returns:
        A new FilterCondition; the input is not modified.
    """
    operator = condition.operator
    if not is_compatible(field.type, operator):
        operator = default_operator_for(field.type)

    value = condition.value
    arity = arity_of(operator)
    if arity != arity_of(condition.operator) or field.name != condition.field:
        if arity == ValueArity.array:
            value = []
        elif arity == ValueArity.none:
            value = None
        else:
            value = ""
    return FilterCondition(field=field.name, operator=operator, value=value)
