"""Field catalog helpers.

The catalog of filterable fields is supplied by the surrounding system and
is read-only for the duration of a validate/compile call. These helpers
index it by name and build the standard content catalog (base content
fields plus ``metadata.*`` fields declared by a collection schema).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from src.filter_engine.models.errors import FieldError, FilterErrorCode
from src.filter_engine.models.filter_tree import FieldOption, FieldType, FilterField

logger = logging.getLogger(__name__)

STATUS_OPTIONS: tuple[FieldOption, ...] = (
    FieldOption(value="draft", label="Draft"),
    FieldOption(value="published", label="Published"),
    FieldOption(value="archived", label="Archived"),
)

METADATA_PREFIX = "metadata."


def build_field_index(catalog: Iterable[FilterField]) -> dict[str, FilterField]:
    """Index catalog entries by field name.

    Duplicate names keep the first definition; later ones are logged and
    ignored.

    Args:
        catalog: Field catalog entries.

    Returns:
        Mapping of field name to FilterField.
    """
    index: dict[str, FilterField] = {}
    for field in catalog:
        if field.name in index:
            logger.warning(
                "Duplicate field %r in filter catalog; keeping first definition",
                field.name,
            )
            continue
        index[field.name] = field
    return index


def parse_catalog(
    catalog: Iterable[FilterField | Mapping[str, Any]],
) -> tuple[list[FilterField], list[FieldError]]:
    """Accept catalog entries as models or plain JSON ``{name, type, options?}``.

    Args:
        catalog: Field catalog entries.

    Returns:
        Tuple of (parsed fields, errors). Entries that fail to parse are
        left out of the fields and reported as INVALID_STRUCTURE errors
        with a ``catalog.<index>`` path.
    """
    fields: list[FilterField] = []
    errors: list[FieldError] = []
    for index, entry in enumerate(catalog):
        if isinstance(entry, FilterField):
            fields.append(entry)
            continue
        path = f"catalog.{index}"
        if not isinstance(entry, Mapping):
            errors.append(
                FieldError(
                    code=FilterErrorCode.INVALID_STRUCTURE,
                    path=path,
                    message=f"Expected a catalog field, got {type(entry).__name__}.",
                )
            )
            continue
        try:
            fields.append(FilterField.model_validate(entry))
        except ValidationError as exc:
            errors.extend(
                FieldError(
                    code=FilterErrorCode.INVALID_STRUCTURE,
                    path=".".join([path, *(str(loc) for loc in err["loc"])]),
                    message=err["msg"],
                    field=entry.get("name") if isinstance(entry.get("name"), str) else None,
                )
                for err in exc.errors()
            )
    if errors:
        logger.debug("Filter catalog has %d malformed entries", len(errors))
    return fields, errors


def content_field_catalog(
    meta_fields: Iterable[Mapping[str, Any]] = (),
    edition_options: Iterable[Mapping[str, Any]] = (),
) -> list[FilterField]:
    """Build the filterable field catalog for a content collection.

    Args:
        meta_fields: Collection schema meta field definitions, each with
            ``name``, ``type`` and optional ``label`` / ``options``.
        edition_options: ``{value, label}`` options for the editions field.

    Returns:
        Base content fields followed by one ``metadata.<name>`` field per
        filterable schema field. Schema fields with a non-filterable type
        (media, json, ...) are skipped.
    """
    fields = [
        FilterField(name="title", label="Title", type=FieldType.text),
        FilterField(name="slug", label="Slug", type=FieldType.text),
        FilterField(
            name="status", label="Status", type=FieldType.select, options=STATUS_OPTIONS
        ),
        FilterField(name="created_at", label="Created At", type=FieldType.datetime),
        FilterField(name="updated_at", label="Updated At", type=FieldType.datetime),
        FilterField(
            name="editions",
            label="Editions",
            type=FieldType.multi_select,
            options=tuple(FieldOption(**opt) for opt in edition_options),
        ),
    ]

    for meta in meta_fields:
        name = meta.get("name")
        if not name:
            continue
        try:
            field = FilterField(
                name=f"{METADATA_PREFIX}{name}",
                label=meta.get("label") or name,
                type=meta.get("type"),
                options=meta.get("options"),
            )
        except ValidationError:
            logger.debug(
                "Skipping non-filterable meta field %r of type %r",
                name,
                meta.get("type"),
            )
            continue
        fields.append(field)

    return fields
