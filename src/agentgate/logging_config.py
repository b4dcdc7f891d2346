# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge for the middleware.

Library modules log through ``logging.getLogger(__name__)``; this module
routes those records through structlog so request-scoped context bound by
the middleware (request id, hostname, path) lands on every line.

Leaf module: no agentgate imports.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

_REDACTED = "[REDACTED]"
_SECRET_KEYS = frozenset({"api_key", "apikey", "authorization", "x-api-key", "x_api_key"})


def redact_secrets(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Mask credential-bearing event keys before rendering."""
    for key in list(event_dict):
        if key.lower() in _SECRET_KEYS and event_dict[key]:
            event_dict[key] = _REDACTED
    return event_dict


def configure(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route every agentgate log line through one structlog formatter.

    Replaces the root logger handlers with a single stderr handler. Each line
    carries the request id, hostname and path that the middleware binds for
    the request being handled, plus a UTC ISO timestamp. Values under
    credential keys (``api_key``, ``Authorization``) are masked by
    ``redact_secrets`` before rendering, so the SDK API key never reaches
    the logs.

    Args:
        json_output: JSON lines for log shipping at the edge, console output otherwise.
        level: Root logger level name.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.format_exc_info,
    ]

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def bind_request(*, request_id: str, hostname: str, path: str) -> None:
    """Bind per-request fields for every log line emitted while handling it."""
    structlog.contextvars.bind_contextvars(request_id=request_id, hostname=hostname, path=path)


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()
