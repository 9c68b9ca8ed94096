"""Saved filter view record exchanged with the Saved View Store.

A filter view bundles a condition tree, a sort rule list and an optional
raw query under a name. Scope is explicit: a view is either global or tied
to one content collection. Persistence and permission checks (who may edit
``is_system`` views) belong to the store, not to this engine.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from src.filter_engine.models.filter_tree import (
    FilterConditionGroup,
    FilterSortRule,
    empty_root,
)


class GlobalScope(BaseModel):
    """View is visible in every collection."""

    kind: Literal["global"] = "global"


class CollectionScope(BaseModel):
    """View belongs to a single content collection."""

    kind: Literal["collection"] = "collection"
    collection_id: str = Field(..., min_length=1)


ViewScope = Annotated[
    Union[GlobalScope, CollectionScope], Field(discriminator="kind")
]


class FilterView(BaseModel):
    """A named, persisted (tree, sort, raw query) bundle."""

    id: str | None = Field(default=None, description="Store-assigned identifier.")
    name: str = Field(default="Unnamed Filter", description="Display name.")
    slug: str | None = Field(default=None, description="URL-safe identifier.")
    description: str | None = Field(default=None)
    scope: ViewScope = Field(default_factory=GlobalScope)
    conditions: FilterConditionGroup = Field(default_factory=empty_root)
    sort: list[FilterSortRule] = Field(default_factory=list)
    raw_query: dict[str, Any] | None = Field(default=None)
    is_system: bool = Field(default=False)

    def has_raw_query(self) -> bool:
        """Return True if a non-empty raw query replaces the tree."""
        return bool(self.raw_query)

    def has_conditions(self) -> bool:
        return not self.conditions.is_empty()

    def has_sort(self) -> bool:
        return bool(self.sort)

    def can_be_deleted(self) -> bool:
        """System views are immutable to non-privileged callers."""
        return not self.is_system

    def belongs_to_collection(self, collection_id: str) -> bool:
        """Return True if the view is scoped to exactly this collection."""
        return (
            isinstance(self.scope, CollectionScope)
            and self.scope.collection_id == str(collection_id)
        )

    def is_visible_in(self, collection_id: str | None) -> bool:
        """Return True if the view should be offered for a collection.

        Global views are offered everywhere; collection views only in
        their own collection.
        """
        if isinstance(self.scope, GlobalScope):
            return True
        return collection_id is not None and self.belongs_to_collection(collection_id)
