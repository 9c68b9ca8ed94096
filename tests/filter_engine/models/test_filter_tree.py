"""Tests for the condition tree models."""

import pytest
from pydantic import ValidationError

from src.filter_engine.models import (
    FieldType,
    FilterCondition,
    FilterConditionGroup,
    FilterField,
    FilterOperator,
    FilterSortRule,
    SortDirection,
    empty_root,
)


class TestFilterOperator:
    """Verify operator enum values."""

    def test_in_operator_value(self):
        """The `in_` member serializes as 'in'."""
        assert FilterOperator.in_.value == "in"
        assert FilterOperator("in") is FilterOperator.in_

    def test_operator_count(self):
        """Exactly 17 operators exist."""
        assert len(FilterOperator) == 17

    def test_field_type_count(self):
        """Exactly 11 field types exist."""
        assert len(FieldType) == 11


class TestFilterField:
    """Verify field catalog entries."""

    def test_accepts_field_alias(self):
        """`field` is accepted as an alias of `name`."""
        f = FilterField.model_validate({"field": "title", "type": "text"})
        assert f.name == "title"

    def test_rejects_unknown_type(self):
        """Field types outside the enum are rejected."""
        with pytest.raises(ValidationError):
            FilterField(name="cover", type="media")

    def test_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            FilterField(name="", type=FieldType.text)

    def test_is_frozen(self):
        f = FilterField(name="title", type=FieldType.text)
        with pytest.raises(ValidationError):
            f.name = "other"


class TestConditionTree:
    """Verify tree node construction and discrimination."""

    def test_empty_root_is_and_group(self):
        root = empty_root()
        assert root.operator == "and"
        assert root.children == []
        assert root.is_empty()

    def test_children_discriminated_by_type(self):
        """Child dicts are parsed into the right node class by their tag."""
        root = FilterConditionGroup.model_validate({
            "type": "group",
            "operator": "or",
            "children": [
                {"type": "condition", "field": "title", "operator": "equals", "value": "x"},
                {"type": "group", "operator": "and", "children": []},
            ],
        })
        assert isinstance(root.children[0], FilterCondition)
        assert isinstance(root.children[1], FilterConditionGroup)

    def test_unknown_node_tag_rejected(self):
        with pytest.raises(ValidationError):
            FilterConditionGroup.model_validate({
                "type": "group",
                "children": [{"type": "bogus", "field": "title"}],
            })

    def test_unknown_group_operator_rejected(self):
        with pytest.raises(ValidationError):
            FilterConditionGroup(operator="xor")

    def test_unknown_condition_operator_rejected(self):
        with pytest.raises(ValidationError):
            FilterCondition(field="title", operator="like", value="x")

    def test_condition_value_defaults_to_none(self):
        c = FilterCondition(field="title", operator=FilterOperator.exists)
        assert c.value is None

    def test_assignment_is_validated(self):
        """Editing a condition in place re-validates the operator."""
        c = FilterCondition(field="title", operator="equals", value="x")
        c.operator = "contains"
        assert c.operator is FilterOperator.contains
        with pytest.raises(ValidationError):
            c.operator = "nope"


class TestFilterSortRule:
    """Verify sort rule defaults."""

    def test_direction_defaults_to_asc(self):
        assert FilterSortRule(field="title").direction is SortDirection.asc

    def test_invalid_direction_rejected(self):
        with pytest.raises(ValidationError):
            FilterSortRule(field="title", direction="sideways")
