"""Condition tree data models for structured content filters.

This module defines the user-composable filter tree: leaf conditions
(field / operator / value) nested inside AND/OR groups, plus the sort rule
list and the field catalog entries the tree refers to. All models are
Pydantic v2 for validation and JSON serialization.

The models only enforce *shape* (node tags, enum members, list types).
Semantic rules (field existence, operator/type compatibility, value arity,
nesting depth) belong to the tree validator so that partially edited trees
remain representable.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    """Semantic type of a filterable field."""

    text = "text"
    textarea = "textarea"
    number = "number"
    boolean = "boolean"
    date = "date"
    datetime = "datetime"
    time = "time"
    select = "select"
    multi_select = "multi_select"
    email = "email"
    url = "url"


class FilterOperator(str, Enum):
    """Per-field filter operators (exhaustive)."""

    equals = "equals"
    not_equals = "not_equals"
    contains = "contains"
    not_contains = "not_contains"
    starts_with = "starts_with"
    ends_with = "ends_with"
    in_ = "in"  # Python attribute is `in_` (reserved word); VALUE is "in"
    not_in = "not_in"
    gt = "gt"
    gte = "gte"
    lt = "lt"
    lte = "lte"
    exists = "exists"
    not_exists = "not_exists"
    regex = "regex"
    is_empty = "is_empty"
    is_not_empty = "is_not_empty"


class ValueArity(str, Enum):
    """Shape of the value an operator requires."""

    none = "none"
    scalar = "scalar"
    array = "array"


class SortDirection(str, Enum):
    """Sort direction for a single sort rule."""

    asc = "asc"
    desc = "desc"


# ---------------------------------------------------------------------------
# Field catalog
# ---------------------------------------------------------------------------


class FieldOption(BaseModel):
    """One enumerated option of a select / multi_select field."""

    model_config = ConfigDict(frozen=True)

    value: Any = Field(..., description="Stored option value.")
    label: str | None = Field(default=None, description="Display label.")


class FilterField(BaseModel):
    """A filterable field declared by the surrounding system.

    Accepts ``field`` as an alias of ``name`` so catalogs produced for the
    admin UI can be passed through unchanged.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("name", "field"),
        description="Unique field key; dotted paths address nested values.",
    )
    label: str = Field(default="", description="Display label.")
    type: FieldType = Field(..., description="Semantic field type.")
    options: tuple[FieldOption, ...] | None = Field(
        default=None, description="Ordered enumerated options, if any."
    )


# ---------------------------------------------------------------------------
# Tree nodes
# ---------------------------------------------------------------------------


class FilterCondition(BaseModel):
    """A single field / operator / value test (leaf of the tree)."""

    model_config = ConfigDict(validate_assignment=True)

    type: Literal["condition"] = "condition"
    field: str = Field(..., description="FilterField.name this condition tests.")
    operator: FilterOperator = Field(..., description="Comparison operator.")
    value: Any = Field(
        default=None,
        description="None for none-arity, list for array-arity, scalar otherwise.",
    )

    @field_validator("value", mode="before")
    @classmethod
    def _tuple_to_list(cls, value: Any) -> Any:
        """Store array values as lists so they survive a JSON round trip."""
        if isinstance(value, tuple):
            return list(value)
        return value


class FilterConditionGroup(BaseModel):
    """A boolean combinator (AND/OR) over child conditions and groups."""

    model_config = ConfigDict(validate_assignment=True)

    type: Literal["group"] = "group"
    operator: Literal["and", "or"] = Field(
        default="and", description="Logical operator joining the children."
    )
    children: list[FilterNode] = Field(
        default_factory=list,
        description="Ordered child conditions and nested groups.",
    )

    def is_empty(self) -> bool:
        """Return True when the group has no children."""
        return not self.children


FilterNode = Annotated[
    Union[FilterCondition, FilterConditionGroup],
    Field(discriminator="type"),
]

# Rebuild for forward reference resolution
FilterConditionGroup.model_rebuild()


class FilterSortRule(BaseModel):
    """One entry of an ordered sort rule list."""

    model_config = ConfigDict(validate_assignment=True)

    field: str = Field(..., description="FilterField.name to sort by.")
    direction: SortDirection = Field(
        default=SortDirection.asc, description="Sort direction."
    )


def empty_root() -> FilterConditionGroup:
    """Return the root group used when no filter is configured."""
    return FilterConditionGroup(operator="and", children=[])
