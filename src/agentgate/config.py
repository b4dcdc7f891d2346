# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Managed-rules configuration: input models, defaults, and resolution.

Two sources feed a request's configuration:

- local settings supplied in code or a YAML file (``ManagedRulesConfig``)
- the remote bundle fetched per hostname (``RemoteConfigBundle``)

Both use the same shape and accept camelCase (wire format) or snake_case
keys. Every field is optional; ``None`` means "not set here, inherit".
``resolve_config`` layers defaults < local < remote field by field and
returns an immutable ``ResolvedConfig``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any, TypeVar

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from agentgate.errors import ConfigurationError
from agentgate.geo.classifier import PageType

logger = logging.getLogger(__name__)

_PAGE_TYPE_VALUES = frozenset(t.value for t in PageType)


def _is_page_type(value: Any) -> bool:
    return isinstance(value, str) and value in _PAGE_TYPE_VALUES


class ManagedFileMode(StrEnum):
    APPEND = "append"
    MERGE = "merge"
    REPLACE = "replace"
    DISABLED = "disabled"


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class _Settings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


class ManagedFileSettings(_Settings):
    """robots.txt / sitemap settings. ``mode`` is kept as a plain string so an
    unknown value from a newer dashboard serves the origin file unchanged
    instead of rejecting the whole bundle."""

    enabled: bool | None = None
    mode: str | None = None
    content: str | None = None


class WellKnownFileSettings(_Settings):
    mode: str | None = None
    content: str | None = None


class WellKnownSettings(_Settings):
    enabled: bool | None = None
    files: dict[str, WellKnownFileSettings] | None = None


class PageRule(_Settings):
    """Per-path optimization override, keyed by ``url_pattern``."""

    url_pattern: str
    page_type: PageType | None = None
    schema_types: tuple[str, ...] | None = None
    summary: str | None = None
    custom_structured_data: dict[str, Any] | None = Field(
        None,
        validation_alias=AliasChoices("customStructuredData", "customJsonLd", "custom_structured_data"),
    )
    disabled: bool | None = None

    @field_validator("page_type", mode="before")
    @classmethod
    def _known_page_type(cls, value: Any) -> Any:
        if value is None or _is_page_type(value):
            return value
        logger.debug("Ignoring unknown page type %r", value)
        return None


class GeoSettings(_Settings):
    enabled: bool | None = None
    inject_json_ld: bool | None = None
    inject_summary: bool | None = None
    enrich_headings: bool | None = None
    page_types: tuple[PageType, ...] | None = None
    rules: tuple[PageRule, ...] | None = None

    @field_validator("page_types", mode="before")
    @classmethod
    def _known_page_types(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        known = [v for v in value if _is_page_type(v)]
        if len(known) != len(value):
            logger.debug("Ignoring unknown page types in %r", value)
        return known


class ManagedRulesConfig(_Settings):
    robots_txt: ManagedFileSettings | None = None
    sitemap: ManagedFileSettings | None = None
    well_known: WellKnownSettings | None = None
    geo: GeoSettings | None = None


class RemoteConfigBundle(ManagedRulesConfig):
    """Override bundle served by the config API for one hostname."""


# ---------------------------------------------------------------------------
# Resolved configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ManagedFileConfig:
    enabled: bool
    mode: str
    content: str | None = None

    @property
    def active(self) -> bool:
        return self.enabled and self.mode != ManagedFileMode.DISABLED


@dataclass(frozen=True, slots=True)
class WellKnownFile:
    mode: str = ManagedFileMode.REPLACE
    content: str | None = None


@dataclass(frozen=True, slots=True)
class WellKnownConfig:
    enabled: bool = False
    files: MappingProxyType[str, WellKnownFile] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class GeoConfig:
    enabled: bool = False
    inject_json_ld: bool = True
    inject_summary: bool = True
    enrich_headings: bool = True
    page_types: tuple[PageType, ...] | None = None
    rules: tuple[PageRule, ...] = ()


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    robots_txt: ManagedFileConfig = ManagedFileConfig(enabled=False, mode=ManagedFileMode.APPEND)
    sitemap: ManagedFileConfig = ManagedFileConfig(enabled=False, mode=ManagedFileMode.MERGE)
    well_known: WellKnownConfig = field(default_factory=WellKnownConfig)
    geo: GeoConfig = field(default_factory=GeoConfig)


DEFAULT_CONFIG = ResolvedConfig()


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

_M = TypeVar("_M", bound=BaseModel)


def _first(*values: Any) -> Any:
    """First value that is not None (remote before local before default)."""
    return next((v for v in values if v is not None), None)


def _overlay(base: _M, override: _M) -> _M:
    """Field-by-field merge: fields set on *override* win."""
    return base.model_copy(update=override.model_dump(exclude_none=True))


def _resolve_file(
    default: ManagedFileConfig,
    local: ManagedFileSettings | None,
    remote: ManagedFileSettings | None,
) -> ManagedFileConfig:
    layers = [s for s in (remote, local) if s is not None]
    return ManagedFileConfig(
        enabled=_first(*(s.enabled for s in layers), default.enabled),
        mode=_first(*(s.mode for s in layers), default.mode),
        content=_first(*(s.content for s in layers), default.content),
    )


def _resolve_well_known(local: WellKnownSettings | None, remote: WellKnownSettings | None) -> WellKnownConfig:
    default = DEFAULT_CONFIG.well_known
    merged: dict[str, WellKnownFileSettings] = dict((local.files if local else None) or {})
    for name, override in ((remote.files if remote else None) or {}).items():
        merged[name] = _overlay(merged[name], override) if name in merged else override

    files = {
        name: WellKnownFile(mode=s.mode or ManagedFileMode.REPLACE, content=s.content) for name, s in merged.items()
    }
    return WellKnownConfig(
        enabled=_first(remote.enabled if remote else None, local.enabled if local else None, default.enabled),
        files=MappingProxyType(files),
    )


def merge_rules(local: tuple[PageRule, ...], remote: tuple[PageRule, ...]) -> tuple[PageRule, ...]:
    """Keyed merge by ``url_pattern``: local order first, then remote-only rules.

    Patterns are compared as exact strings.
    """
    merged: dict[str, PageRule] = {}
    for rule in local:
        merged.setdefault(rule.url_pattern, rule)
    for rule in remote:
        existing = merged.get(rule.url_pattern)
        merged[rule.url_pattern] = _overlay(existing, rule) if existing is not None else rule
    return tuple(merged.values())


def _resolve_geo(local: GeoSettings | None, remote: GeoSettings | None) -> GeoConfig:
    default = DEFAULT_CONFIG.geo
    layers = [s for s in (remote, local) if s is not None]
    return GeoConfig(
        enabled=_first(*(s.enabled for s in layers), default.enabled),
        inject_json_ld=_first(*(s.inject_json_ld for s in layers), default.inject_json_ld),
        inject_summary=_first(*(s.inject_summary for s in layers), default.inject_summary),
        enrich_headings=_first(*(s.enrich_headings for s in layers), default.enrich_headings),
        page_types=_first(*(s.page_types for s in layers), default.page_types),
        rules=merge_rules(
            (local.rules if local else None) or (),
            (remote.rules if remote else None) or (),
        ),
    )


def resolve_config(
    local: ManagedRulesConfig | None = None,
    remote: RemoteConfigBundle | None = None,
) -> ResolvedConfig:
    """Layer defaults, local settings, and the remote bundle (remote wins)."""
    local = local or ManagedRulesConfig()
    remote = remote or RemoteConfigBundle()
    return ResolvedConfig(
        robots_txt=_resolve_file(DEFAULT_CONFIG.robots_txt, local.robots_txt, remote.robots_txt),
        sitemap=_resolve_file(DEFAULT_CONFIG.sitemap, local.sitemap, remote.sitemap),
        well_known=_resolve_well_known(local.well_known, remote.well_known),
        geo=_resolve_geo(local.geo, remote.geo),
    )


def load_managed_rules(path: str | Path) -> ManagedRulesConfig:
    """Load local managed-rules settings from a YAML file.

    Raises:
        ConfigurationError: unreadable file, bad YAML, or invalid settings.
    """
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot load managed rules from {path}: {e}") from e
    if raw is None:
        return ManagedRulesConfig()
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Managed rules file {path} must contain a mapping")
    try:
        return ManagedRulesConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid managed rules in {path}: {e}") from e
