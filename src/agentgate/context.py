# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""RequestContext: per-request decision state shared by pipeline stages.

Owned by exactly one request. ``response`` is replaced as stages act and
``page_type`` is filled in by the optimization stage.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Mapping
from typing import Any

from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response

from agentgate.geo.agents import AgentCategory, detect_agent
from agentgate.geo.classifier import PageType

TRAFFIC_GOOD_BOT = "good_bot"
TRAFFIC_HUMAN = "human"


@dataclasses.dataclass(slots=True, kw_only=True)
class RequestContext:
    request: Request = dataclasses.field(repr=False)
    response: Response = dataclasses.field(repr=False)
    url: URL
    is_ai_agent: bool = False
    agent_name: str | None = None
    agent_category: AgentCategory | None = None
    agent_tags: tuple[str, ...] = ()
    traffic_type: str = TRAFFIC_HUMAN
    country: str | None = None
    client_ip: str = ""
    request_id: str = ""
    session_id: str | None = None
    page_type: PageType | None = None

    @property
    def path(self) -> str:
        return self.url.path

    @property
    def hostname(self) -> str:
        return self.url.hostname or ""


def edge_metadata(scope: Mapping[str, Any]) -> Mapping[str, Any]:
    """Provider metadata (``cf``-style mapping) an edge runtime put in scope state."""
    cf = scope.get("state", {}).get("cf")
    return cf if isinstance(cf, Mapping) else {}


def _client_ip(request: Request) -> str:
    state_ip = request.scope.get("state", {}).get("client_ip", "")
    if state_ip:
        return state_ip
    header_ip = request.headers.get("cf-connecting-ip", "").strip()
    if header_ip:
        return header_ip
    return request.client.host if request.client else ""


def build_context(request: Request, response: Response, *, session_id: str | None = None) -> RequestContext:
    """Assemble the context for one request from the request and origin response."""
    agent = detect_agent(request.headers.get("user-agent"))
    state = request.scope.get("state", {})
    country = edge_metadata(request.scope).get("country") or request.headers.get("cf-ipcountry") or None

    return RequestContext(
        request=request,
        response=response,
        url=request.url,
        is_ai_agent=agent.is_ai_agent,
        agent_name=agent.name,
        agent_category=agent.category,
        agent_tags=agent.tags,
        traffic_type=TRAFFIC_GOOD_BOT if agent.is_ai_agent else TRAFFIC_HUMAN,
        country=country,
        client_ip=_client_ip(request),
        request_id=state.get("request_id") or uuid.uuid4().hex,
        session_id=session_id,
    )
