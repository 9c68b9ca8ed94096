"""Test helper utilities for the filter engine tests."""

from tests.helpers.filter_trees import (
    FIELD_NAME_BY_TYPE,
    build_catalog,
    cond,
    group,
)

__all__ = [
    "FIELD_NAME_BY_TYPE",
    "build_catalog",
    "cond",
    "group",
]
