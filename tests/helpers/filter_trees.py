"""Catalog and condition tree builders shared by the filter engine tests."""

from src.filter_engine.models import (
    FieldOption,
    FieldType,
    FilterCondition,
    FilterConditionGroup,
    FilterField,
    FilterOperator,
)

# One representative catalog field per field type
FIELD_NAME_BY_TYPE = {
    FieldType.text: "title",
    FieldType.textarea: "body",
    FieldType.email: "author_email",
    FieldType.url: "website",
    FieldType.number: "price",
    FieldType.boolean: "featured",
    FieldType.date: "publish_date",
    FieldType.datetime: "created_at",
    FieldType.time: "start_time",
    FieldType.select: "status",
    FieldType.multi_select: "editions",
}


def build_catalog() -> list[FilterField]:
    """One field per FieldType plus a nested metadata field."""
    return [
        FilterField(name="title", label="Title", type=FieldType.text),
        FilterField(name="body", label="Body", type=FieldType.textarea),
        FilterField(name="author_email", label="Author Email", type=FieldType.email),
        FilterField(name="website", label="Website", type=FieldType.url),
        FilterField(name="price", label="Price", type=FieldType.number),
        FilterField(name="featured", label="Featured", type=FieldType.boolean),
        FilterField(name="publish_date", label="Publish Date", type=FieldType.date),
        FilterField(name="created_at", label="Created At", type=FieldType.datetime),
        FilterField(name="start_time", label="Start Time", type=FieldType.time),
        FilterField(
            name="status",
            label="Status",
            type=FieldType.select,
            options=(
                FieldOption(value="draft", label="Draft"),
                FieldOption(value="published", label="Published"),
                FieldOption(value="archived", label="Archived"),
            ),
        ),
        FilterField(
            name="editions",
            label="Editions",
            type=FieldType.multi_select,
            options=(
                FieldOption(value="print", label="Print"),
                FieldOption(value="web", label="Web"),
                FieldOption(value="mobile", label="Mobile"),
            ),
        ),
        FilterField(name="metadata.rating", label="Rating", type=FieldType.number),
    ]


def cond(field: str, operator: FilterOperator | str, value=None) -> FilterCondition:
    """Build a FilterCondition."""
    return FilterCondition(field=field, operator=operator, value=value)


def group(*children, operator: str = "and") -> FilterConditionGroup:
    """Build a FilterConditionGroup."""
    return FilterConditionGroup(operator=operator, children=list(children))
