"""Unit tests for src/errors/registry.py.

Tests verify:
- Filter engine error codes are registered with correct categories and titles
- Category lookups and unknown codes behave as expected
"""

import pytest

from src.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    get_error,
    get_errors_by_category,
)


@pytest.mark.parametrize(
    "code,category,title",
    [
        ("E-2050", ErrorCategory.VALIDATION, "Unknown Filter Field"),
        ("E-2051", ErrorCategory.VALIDATION, "Incompatible Operator"),
        ("E-2052", ErrorCategory.VALIDATION, "Invalid Filter Value"),
        ("E-2053", ErrorCategory.VALIDATION, "Duplicate Sort Field"),
        ("E-2054", ErrorCategory.VALIDATION, "Filter Too Complex"),
        ("E-2055", ErrorCategory.VALIDATION, "Malformed Filter"),
        ("E-2056", ErrorCategory.VALIDATION, "Invalid Value For Field Type"),
        ("E-2057", ErrorCategory.VALIDATION, "Unsupported Operator Combination"),
        ("E-2058", ErrorCategory.VALIDATION, "Raw Query Rejected"),
        ("E-4050", ErrorCategory.SYSTEM, "Invalid Filter Engine Configuration"),
    ],
)
def test_error_codes_registered(code, category, title):
    """All filter engine error codes must be registered."""
    error = get_error(code)
    assert error is not None, f"{code} not found in registry"
    assert error.category == category
    assert error.title == title


def test_unknown_code_returns_none():
    assert get_error("E-9999") is None


def test_errors_by_category():
    system = get_errors_by_category(ErrorCategory.SYSTEM)
    assert [e.code for e in system] == ["E-4050"]
    assert len(get_errors_by_category(ErrorCategory.VALIDATION)) == 9


def test_registry_keys_match_codes():
    for key, error in ERROR_REGISTRY.items():
        assert key == error.code
        assert error.message_template
        assert error.remediation
