# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Middleware settings and environment overrides.

Environment variables (all optional):

- ``AGENTGATE_API_KEY``          API key; without one the middleware passes everything through
- ``AGENTGATE_API_BASE_URL``     config API base URL
- ``AGENTGATE_CONFIG_CACHE_TTL`` seconds a fetched bundle stays cached
- ``AGENTGATE_INGEST_URL``       analytics ingest URL
- ``AGENTGATE_ANALYTICS``        "0"/"false"/"no" disables analytics
- ``AGENTGATE_SESSION_TRACKING`` "0"/"false"/"no" disables the session cookie
- ``AGENTGATE_PROVIDER``         bot-score provider adapter ("cloudflare")
- ``AGENTGATE_RULES_FILE``       YAML file with local managed rules
- ``AGENTGATE_DEBUG``            "1"/"true"/"yes" enables debug logging
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable, Mapping
from contextlib import suppress
from dataclasses import dataclass, field, replace
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import TYPE_CHECKING, Any

from agentgate.analytics.client import DEFAULT_INGEST_URL
from agentgate.config import ManagedRulesConfig, load_managed_rules
from agentgate.remote_config import DEFAULT_API_BASE_URL, DEFAULT_CACHE_TTL

if TYPE_CHECKING:
    from starlette.responses import Response

    from agentgate.context import RequestContext

try:
    SDK_VERSION = _pkg_version("agentgate")
except PackageNotFoundError:
    SDK_VERSION = "unknown"

DEFAULT_SESSION_COOKIE = "__agentgate_sid"
DEFAULT_SESSION_MAX_AGE = 1800

_TRUE = ("1", "true", "yes")
_FALSE = ("0", "false", "no")

ResponseHook = Callable[["RequestContext"], Awaitable["Response"]]


@dataclass(frozen=True, slots=True)
class SessionConfig:
    enabled: bool = True
    cookie_name: str = DEFAULT_SESSION_COOKIE
    max_age: int = DEFAULT_SESSION_MAX_AGE

    def set_cookie_value(self, session_id: str) -> str:
        return f"{self.cookie_name}={session_id}; Path=/; Max-Age={self.max_age}; HttpOnly; Secure; SameSite=Lax"


@dataclass(frozen=True, slots=True)
class MiddlewareConfig:
    """Immutable middleware configuration."""

    api_key: str = ""
    managed_rules: ManagedRulesConfig = field(default_factory=ManagedRulesConfig)
    api_base_url: str = DEFAULT_API_BASE_URL
    config_cache_ttl: int = DEFAULT_CACHE_TTL
    session: SessionConfig = field(default_factory=SessionConfig)
    analytics_enabled: bool = True
    ingest_url: str = DEFAULT_INGEST_URL
    provider: str | None = None
    on_response: ResponseHook | None = field(default=None, repr=False)
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> MiddlewareConfig:
        """Build settings from ``AGENTGATE_*`` variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        config = cls()

        def _get(name: str) -> str:
            return env.get(name, "").strip()

        changes: dict[str, Any] = {}
        if api_key := _get("AGENTGATE_API_KEY"):
            changes["api_key"] = api_key
        if base_url := _get("AGENTGATE_API_BASE_URL"):
            changes["api_base_url"] = base_url
        if ttl := _get("AGENTGATE_CONFIG_CACHE_TTL"):
            with suppress(ValueError):
                changes["config_cache_ttl"] = int(ttl)
        if ingest_url := _get("AGENTGATE_INGEST_URL"):
            changes["ingest_url"] = ingest_url
        if _get("AGENTGATE_ANALYTICS").lower() in _FALSE:
            changes["analytics_enabled"] = False
        if _get("AGENTGATE_SESSION_TRACKING").lower() in _FALSE:
            changes["session"] = replace(config.session, enabled=False)
        if provider := _get("AGENTGATE_PROVIDER"):
            changes["provider"] = provider.lower()
        if rules_file := _get("AGENTGATE_RULES_FILE"):
            changes["managed_rules"] = load_managed_rules(rules_file)
        if _get("AGENTGATE_DEBUG").lower() in _TRUE:
            changes["debug"] = True

        changes.update(overrides)
        return replace(config, **changes)
