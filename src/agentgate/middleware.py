# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""AgentGate ASGI middleware.

Wraps any ASGI app (the origin). Per HTTP request:

1. call the origin and fetch the remote config bundle concurrently
2. resolve config (defaults < local < remote)
3. build the request context and run the managed-rules pipeline
4. apply the ``on_response`` hook, set the session cookie
5. send the response; analytics run afterwards as a background task

Pure ASGI, no BaseHTTPMiddleware. Fail-open: if anything after step 1 raises,
the origin response is sent unmodified. Errors raised by the origin app
itself propagate as they would without the middleware. Without an API key
the middleware is a pass-through.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from starlette.background import BackgroundTask, BackgroundTasks
from starlette.requests import Request
from starlette.responses import Response

from agentgate.analytics.client import AnalyticsClient
from agentgate.analytics.events import MiddlewareMetadata
from agentgate.analytics.providers import create_provider_adapter
from agentgate.config import RemoteConfigBundle, resolve_config
from agentgate.context import RequestContext, build_context
from agentgate.logging_config import bind_request, clear_request
from agentgate.pipeline import GEO_STAGE, run_pipeline
from agentgate.remote_config import RemoteConfigFetcher
from agentgate.responses import capture_response, clone_response
from agentgate.settings import SDK_VERSION, MiddlewareConfig

logger = logging.getLogger(__name__)


class AgentGateMiddleware:
    """Managed files and AI-agent content optimization in front of an ASGI app."""

    def __init__(
        self,
        app: Any,
        config: MiddlewareConfig | None = None,
        *,
        fetcher: RemoteConfigFetcher | None = None,
        analytics: AnalyticsClient | None = None,
    ) -> None:
        self.app = app
        self.config = config if config is not None else MiddlewareConfig.from_env()
        if self.config.debug:
            logger.setLevel(logging.DEBUG)

        self.fetcher = fetcher
        if self.fetcher is None and self.config.api_key:
            self.fetcher = RemoteConfigFetcher(
                self.config.api_key,
                api_base_url=self.config.api_base_url,
                cache_ttl=self.config.config_cache_ttl,
            )

        self.analytics = analytics
        if self.analytics is None and self.config.api_key and self.config.analytics_enabled:
            self.analytics = AnalyticsClient(
                self.config.api_key,
                ingest_url=self.config.ingest_url,
                provider=create_provider_adapter(self.config.provider),
            )

    async def aclose(self) -> None:
        if self.analytics is not None:
            await self.analytics.aclose()

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or not self.config.api_key:
            await self.app(scope, receive, send)
            return

        scope.setdefault("state", {})
        started_at = time.monotonic()
        request = Request(scope, receive)

        remote_task = asyncio.create_task(self._fetch_remote(request.url.hostname or ""))
        try:
            origin = await capture_response(self.app, scope, receive)
        except BaseException:
            remote_task.cancel()
            raise
        remote = await remote_task

        try:
            response = await self._handle(request, origin, remote, started_at)
        except Exception:
            logger.warning("AgentGate failed for %s, serving origin response", request.url.path, exc_info=True)
            response = origin
        finally:
            clear_request()

        await response(scope, receive, send)

    # ── Steps ────────────────────────────────────────────────────────

    async def _fetch_remote(self, hostname: str) -> RemoteConfigBundle | None:
        if self.fetcher is None or not hostname:
            return None
        try:
            return await self.fetcher.fetch(hostname)
        except Exception:
            logger.warning("Remote config fetch raised for %s", hostname, exc_info=True)
            return None

    async def _handle(
        self,
        request: Request,
        origin: Response,
        remote: RemoteConfigBundle | None,
        started_at: float,
    ) -> Response:
        session_id = self._session_id(request)
        context = build_context(request, origin, session_id=session_id)
        bind_request(request_id=context.request_id, hostname=context.hostname, path=context.path)

        config = resolve_config(self.config.managed_rules, remote)

        async def fetch_origin() -> Response:
            return clone_response(origin)

        result = await run_pipeline(context, config, fetch_origin)
        if result.applied:
            logger.debug("Applied stages: %s", ",".join(result.applied))

        response = await self._apply_hook(context, result.response)

        if session_id is not None:
            response.headers.append("set-cookie", self.config.session.set_cookie_value(session_id))

        if self.analytics is not None:
            metadata: MiddlewareMetadata = {
                "sdk_version": SDK_VERSION,
                "middleware_enabled": True,
                "geo_modified": GEO_STAGE in result.applied,
            }
            if result.applied:
                metadata["managed_rules_applied"] = list(result.applied)
            if context.page_type is not None:
                metadata["geo_page_type"] = context.page_type.value
            _add_background(
                response,
                BackgroundTask(
                    self.analytics.track,
                    request,
                    response,
                    started_at=started_at,
                    request_id=context.request_id,
                    session_id=session_id,
                    metadata=dict(metadata),
                ),
            )
        return response

    def _session_id(self, request: Request) -> str | None:
        session = self.config.session
        if not session.enabled:
            return None
        return request.cookies.get(session.cookie_name) or str(uuid.uuid4())

    async def _apply_hook(self, context: RequestContext, response: Response) -> Response:
        hook = self.config.on_response
        if hook is None:
            return response
        context.response = response
        try:
            return await hook(context)
        except Exception:
            logger.warning("on_response hook failed, keeping pipeline response", exc_info=True)
            return response


def _add_background(response: Response, task: BackgroundTask) -> None:
    """Attach *task* after any background work the response already carries."""
    if response.background is None:
        response.background = task
    else:
        response.background = BackgroundTasks([response.background, task])
