# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""AgentGate: edge middleware for AI-agent traffic.

Sits in front of any ASGI app and
- serves managed ``/robots.txt``, sitemaps and ``/.well-known/*`` files
  (replace, append or merge with the origin's own copy)
- rewrites HTML/markdown responses for detected AI agents with JSON-LD,
  a summary meta tag and annotated headings
- reports each request to the analytics ingest in the background

Configuration layers code defaults, local settings and a per-hostname remote
bundle. Any failure inside AgentGate serves the origin response unchanged.
"""

from __future__ import annotations

from agentgate.config import ManagedRulesConfig, PageRule, RemoteConfigBundle, ResolvedConfig, resolve_config
from agentgate.errors import AgentGateError, ConfigurationError
from agentgate.middleware import AgentGateMiddleware
from agentgate.settings import SDK_VERSION, MiddlewareConfig, SessionConfig

__version__ = SDK_VERSION

__all__ = [
    "AgentGateError",
    "AgentGateMiddleware",
    "ConfigurationError",
    "ManagedRulesConfig",
    "MiddlewareConfig",
    "PageRule",
    "RemoteConfigBundle",
    "ResolvedConfig",
    "SessionConfig",
    "__version__",
    "resolve_config",
]
