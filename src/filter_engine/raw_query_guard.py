"""Raw query guard: default-deny allow-list for hand-written query documents.

A raw query replaces the structured tree and is handed to the document
store verbatim, so it is a server-side security boundary. The guard is
purely syntactic: every ``$``-prefixed key must be a read-only operator on
the allow-list, every other key must be a plain dotted field name, and the
document may not nest deeper than the configured bound. It never interprets
what the query means.
"""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from src.filter_engine.config import DEFAULT_CONFIG, FilterEngineConfig
from src.filter_engine.models.errors import RawQuerySecurityError

logger = logging.getLogger(__name__)

# Server-side code execution and write operators. Rejected like any other
# unlisted operator, but logged at WARNING.
KNOWN_DANGEROUS_OPERATORS = frozenset({
    "$where",
    "$function",
    "$accumulator",
    "$expr",
    "$jsonSchema",
    "$text",
    "$search",
    "$near",
    "$nearSphere",
    "$geoWithin",
    "$geoIntersects",
    "$meta",
    "$set",
    "$unset",
    "$inc",
    "$push",
    "$pull",
    "$rename",
    "$merge",
    "$out",
    "$lookup",
})

_FIELD_KEY_PATTERN = re.compile(r"^[^$.\x00][^$\x00]*$")


@dataclass(frozen=True)
class SafeRawQuery:
    """A raw query that passed the guard.

    Holds a private deep copy; callers get fresh copies from ``document``.
    """

    _document: dict[str, Any]

    @property
    def document(self) -> dict[str, Any]:
        return copy.deepcopy(self._document)

    def scoped_to(self, collection_id: str) -> dict[str, Any]:
        """Return the query restricted to one content collection."""
        scoped = self.document
        scoped["collection_id"] = collection_id
        return scoped


@dataclass
class RawQueryResult:
    """Outcome of guarding a raw query: a safe query or the rejection."""

    safe_query: SafeRawQuery | None = None
    error: RawQuerySecurityError | None = None

    @property
    def ok(self) -> bool:
        return self.safe_query is not None and self.error is None


class _RawQueryRejected(Exception):
    def __init__(self, error: RawQuerySecurityError) -> None:
        self.error = error
        super().__init__(error.message)


def _is_plain_field_key(key: str) -> bool:
    """Plain dotted name: no '$', no NUL, no empty segments."""
    if not _FIELD_KEY_PATTERN.match(key):
        return False
    return all(segment for segment in key.split("."))


def _field_allowed(key: str, allowed: frozenset[str]) -> bool:
    if key in allowed:
        return True
    return any(key.startswith(name + ".") for name in allowed)


class _GuardWalker:
    """Recursive walk over one raw query document."""

    def __init__(
        self, config: FilterEngineConfig, allowed_fields: frozenset[str] | None
    ) -> None:
        self.allowed_operators = frozenset(config.raw_query.allowed_operators)
        self.max_depth = config.raw_query.max_depth
        self.allowed_fields = allowed_fields

    def reject(self, key: str, path: str, message: str) -> None:
        raise _RawQueryRejected(RawQuerySecurityError(key=key, path=path, message=message))

    def walk(self, node: Any, path: str, depth: int) -> None:
        if isinstance(node, Mapping):
            if depth > self.max_depth:
                self.reject(
                    path.rsplit(".", 1)[-1],
                    path,
                    f"Raw query nests deeper than {self.max_depth} levels.",
                )
            for key, value in node.items():
                key_path = f"{path}.{key}" if path else str(key)
                self.check_key(key, key_path)
                self.walk(value, key_path, depth + 1)
        elif isinstance(node, (list, tuple)):
            for index, item in enumerate(node):
                item_path = f"{path}.{index}"
                item_depth = depth
                # A list directly inside a list is one more level.
                if isinstance(item, (list, tuple)):
                    item_depth += 1
                    if item_depth > self.max_depth:
                        self.reject(
                            str(index),
                            item_path,
                            f"Raw query nests deeper than {self.max_depth} levels.",
                        )
                self.walk(item, item_path, item_depth)

    def check_key(self, key: Any, path: str) -> None:
        if not isinstance(key, str):
            self.reject(str(key), path, f"Raw query key {key!r} must be a string.")
        if key.startswith("$"):
            if key in self.allowed_operators:
                return
            if key in KNOWN_DANGEROUS_OPERATORS:
                logger.warning("Rejected dangerous raw query operator %s at %s", key, path)
            self.reject(key, path, f"Operator {key!r} is not allowed in raw queries.")
        if not _is_plain_field_key(key):
            self.reject(key, path, f"Field name {key!r} is not a plain dotted name.")
        if self.allowed_fields is not None and not _field_allowed(key, self.allowed_fields):
            self.reject(key, path, f"Field {key!r} is not in the filter catalog.")


def guard_raw_query(
    raw: Any,
    config: FilterEngineConfig | None = None,
    allowed_fields: Iterable[str] | None = None,
) -> RawQueryResult:
    """Check a raw query against the read-only operator allow-list.

    Args:
        raw: Raw query document (plain JSON object).
        config: Engine configuration supplying the allow-list and depth bound.
        allowed_fields: Optional catalog field names; when given, field keys
            must be one of them or a dotted child of one.

    Returns:
        RawQueryResult with a SafeRawQuery, or the first rejection found
        (depth-first, in document order).
    """
    config = config or DEFAULT_CONFIG
    if not isinstance(raw, Mapping):
        error = RawQuerySecurityError(
            key="",
            path="",
            message=f"Raw query must be a JSON object, got {type(raw).__name__}.",
        )
        return RawQueryResult(error=error)

    allowed = frozenset(allowed_fields) if allowed_fields is not None else None
    walker = _GuardWalker(config, allowed)
    try:
        walker.walk(raw, "", depth=1)
    except _RawQueryRejected as exc:
        logger.debug("Raw query rejected at %s: %s", exc.error.path, exc.error.message)
        return RawQueryResult(error=exc.error)

    return RawQueryResult(safe_query=SafeRawQuery(copy.deepcopy(dict(raw))))
