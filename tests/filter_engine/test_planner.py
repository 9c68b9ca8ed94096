"""Tests for query planning (raw vs structured mode)."""

from src.filter_engine.catalog import content_field_catalog
from src.filter_engine.evaluator import matches, select_documents
from src.filter_engine.models import (
    CollectionScope,
    FilterErrorCode,
    FilterSortRule,
    FilterView,
    MatchAll,
)
from src.filter_engine.planner import plan_filter_view, plan_query
from src.filter_engine.serialization import filter_view_from_record
from tests.helpers import cond, group


class TestStructuredMode:
    """Tree + sort are validated and compiled."""

    def test_models_input(self, catalog):
        plan = plan_query(
            group(cond("status", "equals", "draft")),
            [FilterSortRule(field="title")],
            None,
            catalog,
        )
        assert plan.ok
        assert plan.mode == "structured"
        assert plan.predicate is not None
        assert [k.field for k in plan.ordering.keys] == ["title"]
        assert plan.explanation == "Filter: status equals 'draft'."
        assert plan.raw_document() is None

    def test_json_input(self, catalog):
        plan = plan_query(
            {"type": "condition", "field": "price", "operator": "gt", "value": "3"},
            [{"field": "price", "direction": "desc"}],
            {},
            catalog,
        )
        assert plan.ok
        assert plan.predicate.children[0].operand == 3

    def test_mixed_input(self, catalog):
        plan = plan_query(
            group(cond("title", "exists")), [{"field": "title"}], None, catalog
        )
        assert plan.ok

    def test_no_conditions(self, catalog):
        plan = plan_query(None, None, None, catalog)
        assert plan.ok
        assert plan.predicate == MatchAll()
        assert plan.ordering.keys == ()

    def test_validation_errors_returned(self, catalog):
        plan = plan_query(group(cond("price", "contains", "1")), [], None, catalog)
        assert not plan.ok
        assert plan.predicate is None
        assert plan.errors[0].code is FilterErrorCode.INCOMPATIBLE_OPERATOR

    def test_compile_errors_returned(self, catalog):
        plan = plan_query(group(cond("price", "equals", "ten")), [], None, catalog)
        assert plan.errors[0].code is FilterErrorCode.VALUE_COERCION_ERROR

    def test_malformed_catalog_returned_as_errors(self):
        plan = plan_query(
            group(cond("views", "gte", 1)), [], None, [{"name": "views"}]
        )
        assert not plan.ok
        codes = {e.code for e in plan.errors}
        assert codes == {FilterErrorCode.INVALID_STRUCTURE, FilterErrorCode.UNKNOWN_FIELD}

    def test_malformed_json_returned_as_errors(self, catalog):
        plan = plan_query({"type": "group", "children": [{"type": "?"}]}, "title", None, catalog)
        assert not plan.ok
        assert {e.code for e in plan.errors} == {FilterErrorCode.INVALID_STRUCTURE}


class TestRawMode:
    """A non-empty raw query replaces tree and sort."""

    def test_raw_query_wins(self, catalog):
        plan = plan_query(
            group(cond("nope", "equals", "x")),
            [FilterSortRule(field="nope")],
            {"status": "draft"},
            catalog,
        )
        assert plan.ok
        assert plan.mode == "raw"
        assert plan.predicate is None
        assert plan.raw_document() == {"status": "draft"}

    def test_rejected_raw_query(self, catalog):
        plan = plan_query(None, None, {"$where": "1"}, catalog)
        assert plan.mode == "raw"
        assert not plan.ok
        assert plan.errors[0].code is FilterErrorCode.RAW_QUERY_FORBIDDEN
        assert plan.errors[0].path == "$where"
        assert plan.raw_document() is None

    def test_collection_scoping(self, catalog):
        plan = plan_query(None, None, {"status": "draft"}, catalog, collection_id="blog")
        assert plan.raw_document() == {"status": "draft", "collection_id": "blog"}


class TestPlanFilterView:
    """Saved views are planned in their collection."""

    def test_collection_view_scoped_by_default(self, catalog):
        view = FilterView(
            scope=CollectionScope(collection_id="blog"), raw_query={"status": "draft"}
        )
        plan = plan_filter_view(view, catalog)
        assert plan.raw_document()["collection_id"] == "blog"

    def test_explicit_collection_overrides(self, catalog):
        view = FilterView(raw_query={"status": "draft"})
        plan = plan_filter_view(view, catalog, collection_id="news")
        assert plan.raw_document()["collection_id"] == "news"

    def test_global_view_unscoped(self, catalog):
        plan = plan_filter_view(FilterView(raw_query={"status": "draft"}), catalog)
        assert "collection_id" not in plan.raw_document()


class TestEndToEnd:
    """A stored 'Recently published' view applied to a collection."""

    def test_published_recent_view(self):
        record = {
            "_id": "view-1",
            "name": "Recently published",
            "collection_id": "blog",
            "conditions": {
                "type": "group",
                "operator": "and",
                "children": [
                    {"type": "condition", "field": "status", "operator": "equals", "value": "published"},
                    {
                        "type": "group",
                        "operator": "or",
                        "children": [
                            {"type": "condition", "field": "editions", "operator": "in", "value": ["web"]},
                            {"type": "condition", "field": "metadata.featured", "operator": "equals", "value": "true"},
                        ],
                    },
                ],
            },
            "sort": [{"field": "created_at", "direction": "desc"}, {"direction": "asc"}],
            "raw_query": {},
        }
        documents = [
            {"_id": 1, "status": "published", "editions": ["web"], "created_at": "2024-01-01T00:00:00Z"},
            {"_id": 2, "status": "published", "editions": ["print"], "metadata": {"featured": True},
             "created_at": "2024-03-01T00:00:00Z"},
            {"_id": 3, "status": "draft", "editions": ["web"], "created_at": "2024-05-01T00:00:00Z"},
            {"_id": 4, "status": "published", "editions": ["print"], "created_at": "2024-04-01T00:00:00Z"},
            {"_id": 5, "status": "published", "editions": ["web", "print"]},
        ]
        catalog = content_field_catalog(
            meta_fields=[{"name": "featured", "type": "boolean"}],
            edition_options=[{"value": "web"}, {"value": "print"}],
        )

        view = filter_view_from_record(record)
        assert view.belongs_to_collection("blog")
        assert len(view.sort) == 1

        plan = plan_filter_view(view, catalog)
        assert plan.ok, plan.errors
        assert plan.mode == "structured"
        assert plan.collection_id == "blog"

        selected = select_documents(documents, plan.predicate, plan.ordering)
        assert [d["_id"] for d in selected] == [2, 1, 5]

    def test_published_with_enough_views(self):
        catalog = [
            {"name": "status", "type": "select", "options": [{"value": "draft"}, {"value": "published"}]},
            {"name": "views", "type": "number"},
        ]
        conditions = {
            "type": "group",
            "operator": "and",
            "children": [
                {"type": "condition", "field": "status", "operator": "equals", "value": "published"},
                {"type": "condition", "field": "views", "operator": "gte", "value": 100},
            ],
        }
        documents = [
            {"status": "published", "views": 150},
            {"status": "published", "views": 50},
            {"status": "draft", "views": 500},
        ]

        plan = plan_query(conditions, [], None, catalog)
        assert plan.ok, plan.errors
        assert [matches(plan.predicate, d) for d in documents] == [True, False, False]
