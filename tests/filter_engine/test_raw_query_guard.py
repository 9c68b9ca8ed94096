"""Tests for the raw query guard (default-deny operator allow-list)."""

import logging

import pytest

from src.filter_engine.config import FilterEngineConfig
from src.filter_engine.models import FilterErrorCode
from src.filter_engine.raw_query_guard import SafeRawQuery, guard_raw_query


class TestAcceptedQueries:
    """Read-only queries pass and are copied."""

    def test_simple_query(self):
        result = guard_raw_query({"status": "published"})
        assert result.ok
        assert isinstance(result.safe_query, SafeRawQuery)
        assert result.safe_query.document == {"status": "published"}

    def test_nested_allowed_operators(self):
        raw = {
            "$or": [
                {"status": {"$in": ["draft", "published"]}},
                {"metadata.rating": {"$gte": 4, "$exists": True}},
                {"editions": {"$elemMatch": {"$eq": "web"}}},
                {"title": {"$regex": "^Hello", "$options": "i"}},
                {"tags": {"$not": {"$size": 0}}},
            ]
        }
        assert guard_raw_query(raw).ok

    def test_safe_query_is_deep_copy(self):
        raw = {"status": {"$in": ["draft"]}}
        result = guard_raw_query(raw)
        raw["status"]["$in"].append("published")
        assert result.safe_query.document == {"status": {"$in": ["draft"]}}

        copy_one = result.safe_query.document
        copy_one["status"] = "x"
        assert result.safe_query.document["status"] == {"$in": ["draft"]}

    def test_scoped_to_collection(self):
        safe = guard_raw_query({"status": "draft"}).safe_query
        assert safe.scoped_to("blog") == {"status": "draft", "collection_id": "blog"}
        assert "collection_id" not in safe.document

    def test_values_are_not_inspected(self):
        """String values that look like operators are data, not keys."""
        assert guard_raw_query({"title": "$where"}).ok


class TestRejectedQueries:
    """Anything off the allow-list is rejected with its full path."""

    @pytest.mark.parametrize(
        "operator",
        ["$where", "$function", "$accumulator", "$expr", "$jsonSchema", "$text",
         "$near", "$geoWithin", "$meta", "$set", "$merge", "$out"],
    )
    def test_dangerous_operators_at_root(self, operator):
        result = guard_raw_query({operator: "x"})
        assert not result.ok
        assert result.error.code is FilterErrorCode.RAW_QUERY_FORBIDDEN
        assert result.error.key == operator
        assert result.error.path == operator

    def test_unknown_operator_rejected(self):
        result = guard_raw_query({"title": {"$fancy": 1}})
        assert result.error.key == "$fancy"
        assert result.error.path == "title.$fancy"

    def test_forbidden_key_at_depth_three(self):
        raw = {"$and": [{"meta": {"$where": "sleep(1000)"}}]}
        result = guard_raw_query(raw)
        assert not result.ok
        assert result.error.key == "$where"
        assert result.error.path == "$and.0.meta.$where"

    def test_dangerous_operator_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            guard_raw_query({"$where": "1"})
        assert "$where" in caplog.text

    def test_first_rejection_reported(self):
        result = guard_raw_query({"a": {"$bad1": 1}, "b": {"$bad2": 2}})
        assert result.error.key == "$bad1"

    @pytest.mark.parametrize("key", ["", ".title", "title.", "a..b", "ti\x00tle", "ti$tle"])
    def test_malformed_field_keys(self, key):
        result = guard_raw_query({key: 1})
        assert not result.ok
        assert result.error.code is FilterErrorCode.RAW_QUERY_FORBIDDEN

    @pytest.mark.parametrize("raw", [["$where"], "status=draft", None, 5])
    def test_non_object_root(self, raw):
        result = guard_raw_query(raw)
        assert not result.ok
        assert result.error.path == ""


class TestConfiguration:
    """Allow-list, depth bound and catalog restriction."""

    def test_custom_allow_list(self):
        config = FilterEngineConfig(raw_query={"allowed_operators": ["$eq"]})
        assert guard_raw_query({"a": {"$eq": 1}}, config).ok
        assert not guard_raw_query({"a": {"$in": [1]}}, config).ok

    def test_depth_bound(self):
        config = FilterEngineConfig(raw_query={"max_depth": 2})
        assert guard_raw_query({"a": {"$eq": 1}}, config).ok
        result = guard_raw_query({"a": {"b": {"$eq": 1}}}, config)
        assert not result.ok
        assert result.error.path == "a.b"

    def test_lists_of_objects_do_not_add_depth(self):
        config = FilterEngineConfig(raw_query={"max_depth": 2})
        assert guard_raw_query({"$or": [{"a": 1}, {"b": 2}]}, config).ok

    def test_nested_lists_count_towards_depth(self):
        config = FilterEngineConfig(raw_query={"max_depth": 3})
        assert guard_raw_query({"tags": [[1, 2], [3]]}, config).ok
        result = guard_raw_query({"tags": [[[[1]]]]}, config)
        assert not result.ok
        assert result.error.path == "tags.0.0"

    def test_deeply_nested_lists_rejected_as_value(self):
        value: list = [1]
        for _ in range(3000):
            value = [value]
        result = guard_raw_query({"tags": value})
        assert not result.ok
        assert "nests deeper" in result.error.message

    def test_depth_bound_is_capped(self):
        with pytest.raises(ValueError):
            FilterEngineConfig(raw_query={"max_depth": 1000})

    def test_allowed_fields(self):
        fields = ["status", "metadata"]
        assert guard_raw_query({"status": "x", "metadata.rating": 3}, allowed_fields=fields).ok
        result = guard_raw_query({"$or": [{"secret": 1}]}, allowed_fields=fields)
        assert result.error.key == "secret"
        assert result.error.path == "$or.0.secret"
        assert not guard_raw_query({"statusx": 1}, allowed_fields=fields).ok
