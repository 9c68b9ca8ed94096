"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. Explicit ``config_path`` argument
2. ./filter_engine.yaml (working directory)
3. ~/.filter_engine/config.yaml (user home)

Environment variables override YAML: FILTER_ENGINE_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.

Engine functions never load configuration themselves; callers pass a
``FilterEngineConfig`` (or rely on its defaults).
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")
_ENV_PREFIX = "FILTER_ENGINE_"

DEFAULT_RAW_QUERY_OPERATORS: tuple[str, ...] = (
    "$and",
    "$or",
    "$nor",
    "$not",
    "$eq",
    "$ne",
    "$gt",
    "$gte",
    "$lt",
    "$lte",
    "$in",
    "$nin",
    "$exists",
    "$type",
    "$regex",
    "$options",
    "$size",
    "$all",
    "$elemMatch",
)


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Args:
        value: String potentially containing ${VAR} references.

    Returns:
        String with all ${VAR} references replaced by their env values.
        Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    """Recursively resolve ${VAR} references in a nested data structure."""
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class LimitsConfig(BaseModel):
    """Structural limits enforced by the tree validator.

    ``max_depth`` counts group levels: the root group is level 1, so the
    default of 3 allows two levels of nested sub-groups.
    """

    max_depth: int = Field(default=3, ge=1)
    max_conditions: int = Field(default=50, ge=1)
    max_in_values: int = Field(default=100, ge=1)


class RegexConfig(BaseModel):
    """Limits for user-supplied regex patterns."""

    max_pattern_length: int = Field(default=512, ge=1)


class RawQueryConfig(BaseModel):
    """Read-only allow-list for raw query documents."""

    max_depth: int = Field(default=10, ge=1, le=100)
    allowed_operators: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RAW_QUERY_OPERATORS)
    )

    @field_validator("allowed_operators")
    @classmethod
    def operators_are_dollar_prefixed(cls, value: list[str]) -> list[str]:
        """Allow-list entries must be query operators, not field names."""
        for op in value:
            if not op.startswith("$"):
                raise ValueError(f"Allowed operator {op!r} must start with '$'")
        return value


class FilterEngineConfig(BaseModel):
    """Top-level configuration for the filter engine."""

    limits: LimitsConfig = LimitsConfig()
    regex: RegexConfig = RegexConfig()
    raw_query: RawQueryConfig = RawQueryConfig()


DEFAULT_CONFIG = FilterEngineConfig()


def _find_config_file() -> Path | None:
    """Search for config file in standard locations.

    Returns:
        Path to config file if found, None otherwise.
    """
    candidates = [
        Path.cwd() / "filter_engine.yaml",
        Path.cwd() / "filter_engine.yml",
        Path.home() / ".filter_engine" / "config.yaml",
        Path.home() / ".filter_engine" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply FILTER_ENGINE_<SECTION>_<KEY> env var overrides to config data.

    Matches section names by longest prefix so multi-word section names
    like ``raw_query`` are handled correctly. For example,
    ``FILTER_ENGINE_RAW_QUERY_MAX_DEPTH`` maps to section ``raw_query``,
    field ``max_depth``. Comma-separated values are split for list fields.

    Args:
        data: Parsed YAML config dict.

    Returns:
        Config dict with env var overrides applied.
    """
    known_sections = sorted(
        FilterEngineConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        suffix = key[len(_ENV_PREFIX):].lower()  # e.g. "raw_query_max_depth"
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if matched_section not in data:
            data[matched_section] = {}
        if not isinstance(data[matched_section], dict):
            continue
        if matched_field == "allowed_operators":
            data[matched_section][matched_field] = [
                op.strip() for op in value.split(",") if op.strip()
            ]
            continue
        try:
            data[matched_section][matched_field] = int(value)
        except ValueError:
            data[matched_section][matched_field] = value
    return data


def load_config(config_path: str | None = None) -> FilterEngineConfig:
    """Load filter engine configuration from YAML with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.filter_engine/).

    Returns:
        Parsed and validated FilterEngineConfig. Defaults (plus env
        overrides) when no config file is found.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
        pydantic.ValidationError: If the config content is invalid.
    """
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    raw_data: dict[str, Any] = {}
    if path is not None:
        logger.info("Loading filter engine config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return FilterEngineConfig(**data)
