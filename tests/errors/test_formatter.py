"""Unit tests for src/errors/formatter.py."""

from src.errors.formatter import (
    FilterEngineError,
    format_error,
    format_error_summary,
    group_errors,
)
from src.filter_engine.models import FieldError, FilterErrorCode, RawQuerySecurityError


class TestFromCode:
    """Verify registry-backed construction."""

    def test_message_template_filled(self):
        err = FilterEngineError.from_code("E-2050", field="nope", paths=["children.0"])
        assert err.code == "E-2050"
        assert "'nope'" in err.message
        assert err.field_name == "nope"
        assert err.paths == ["children.0"]
        assert str(err) == f"E-2050: {err.message}"

    def test_missing_placeholder_keeps_template(self):
        err = FilterEngineError.from_code("E-2051", field="price")
        assert err.message == "Operator '{operator}' cannot be used with field '{field}'."

    def test_unknown_code(self):
        err = FilterEngineError.from_code("E-0000")
        assert err.message == "Unknown error: E-0000"
        assert err.remediation == "Contact support."


class TestFromEngineErrors:
    """Verify conversion from engine error values."""

    def test_from_field_error(self):
        field_error = FieldError(
            code=FilterErrorCode.INCOMPATIBLE_OPERATOR,
            path="children.1",
            message="Operator 'contains' cannot be used with number field 'price'.",
            field="price",
            operator="contains",
        )
        err = FilterEngineError.from_field_error(field_error)
        assert err.code == "E-2051"
        assert err.message == "Operator 'contains' cannot be used with field 'price'."
        assert err.paths == ["children.1"]
        assert err.details["filter_code"] == "INCOMPATIBLE_OPERATOR"

    def test_structural_message_embeds_engine_message(self):
        field_error = FieldError(
            code=FilterErrorCode.STRUCTURAL_LIMIT_EXCEEDED,
            message="Group nesting exceeds the maximum of 3 levels.",
        )
        err = FilterEngineError.from_field_error(field_error)
        assert err.message.endswith("Group nesting exceeds the maximum of 3 levels.")

    def test_from_raw_query_error(self):
        rejection = RawQuerySecurityError(
            key="$where", path="$and.0.$where", message="Operator '$where' is not allowed."
        )
        err = FilterEngineError.from_raw_query_error(rejection)
        assert err.code == "E-2058"
        assert err.message == "Raw query key '$where' is not allowed."
        assert err.paths == ["$and.0.$where"]


class TestFormatting:
    """Verify display formatting and grouping."""

    def test_format_single_location(self):
        err = FilterEngineError.from_code("E-2050", field="nope", paths=["children.0"])
        text = format_error(err)
        assert "Location: children.0" in text
        assert "Field: nope" in text
        assert "Action:" in text

    def test_root_path_rendered(self):
        err = FilterEngineError.from_code("E-2054", message="too many", paths=[""])
        assert "Location: (root)" in format_error(err, include_remediation=False)

    def test_group_combines_paths(self):
        errors = [
            FilterEngineError.from_code("E-2050", field="nope", paths=[p])
            for p in ["children.2", "children.0", "children.2"]
        ]
        grouped = group_errors(errors)
        assert len(grouped) == 1
        assert grouped[0].paths == ["children.0", "children.2"]
        assert errors[0].paths == ["children.2"]

    def test_summary(self):
        assert format_error_summary([]) == "No errors."
        errors = [
            FilterEngineError.from_code("E-2050", field="a", paths=["children.0"]),
            FilterEngineError.from_code("E-2053", field="title", paths=["sort.1"]),
        ]
        summary = format_error_summary(errors)
        assert summary.startswith("2 error type(s) found:")
        assert "1. E-2050" in summary
        assert "2. E-2053" in summary
