# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Analytics ingest event payload and builder."""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime
from typing import Any, NotRequired, TypedDict

from starlette.requests import Request
from starlette.responses import Response

from agentgate.analytics.privacy import sanitize_query_string
from agentgate.analytics.providers import ProviderBotData
from agentgate.context import edge_metadata

EVENT_TYPE_RAW = "raw"


class IngestEvent(TypedDict):
    type: str
    url: str
    hostname: str
    request_id: str
    timestamp: str
    method: str
    path: str
    query_string: NotRequired[str]
    status_code: NotRequired[int]
    response_time_ms: NotRequired[int]
    client_ip: NotRequired[str]
    client_country: NotRequired[str]
    user_agent: NotRequired[str]
    referer: NotRequired[str]
    session_id: NotRequired[str]
    metadata: NotRequired[dict[str, Any]]
    provider_bot_data: NotRequired[dict[str, Any]]
    robots_txt_body: NotRequired[str]


class MiddlewareMetadata(TypedDict):
    sdk_version: str
    middleware_enabled: bool
    managed_rules_applied: NotRequired[list[str]]
    geo_page_type: NotRequired[str]
    geo_modified: bool


def build_event(
    request: Request,
    response: Response | None = None,
    *,
    started_at: float | None = None,
    request_id: str | None = None,
    session_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    provider_data: ProviderBotData | None = None,
    robots_txt_body: str | None = None,
) -> IngestEvent:
    """Describe one request/response pair. The query string is sanitized.

    ``started_at`` is a ``time.monotonic()`` reading taken when the request
    arrived.
    """
    url = request.url
    event: IngestEvent = {
        "type": EVENT_TYPE_RAW,
        "url": str(url.replace(query=sanitize_query_string(url.query) or "")),
        "hostname": url.hostname or "",
        "request_id": request_id or uuid.uuid4().hex,
        "timestamp": datetime.now(UTC).isoformat(),
        "method": request.method,
        "path": url.path,
    }
    optional: dict[str, Any] = {
        "query_string": sanitize_query_string(url.query),
        "status_code": response.status_code if response is not None else None,
        "response_time_ms": round((time.monotonic() - started_at) * 1000) if started_at is not None else None,
        "client_ip": request.headers.get("cf-connecting-ip") or (request.client.host if request.client else None),
        "client_country": edge_metadata(request.scope).get("country") or request.headers.get("cf-ipcountry"),
        "user_agent": request.headers.get("user-agent"),
        "referer": request.headers.get("referer"),
        "session_id": session_id,
        "metadata": metadata,
        "provider_bot_data": provider_data.to_dict() if provider_data is not None else None,
        "robots_txt_body": robots_txt_body,
    }
    for key, value in optional.items():
        if value is not None:
            event[key] = value  # type: ignore[literal-required]
    return event
