# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Analytics transport: event POSTs with exponential backoff and jitter.

The client is constructed and owned by the caller (one per process or
worker) and closed with ``aclose()`` or ``async with``. ``track`` never
raises: delivery failures go to ``on_error`` or the debug log.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse

import httpx
from starlette.requests import Request
from starlette.responses import Response
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from agentgate.analytics.events import IngestEvent, build_event
from agentgate.analytics.providers import GenericAdapter, ProviderAdapter
from agentgate.errors import AnalyticsDeliveryError, ConfigurationError
from agentgate.responses import response_text

logger = logging.getLogger(__name__)

DEFAULT_INGEST_URL = "https://ingest.agentgate.dev/v1/events"
DEFAULT_TIMEOUT = 5.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF = 1.0
DEFAULT_RETRY_MAX_BACKOFF = 30.0
DEFAULT_ROBOTS_TXT_MAX_SIZE = 10_240

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})

ErrorHook = Callable[[Exception, IngestEvent | None], None]


def validate_ingest_url(url: str) -> str:
    """Require https (plain http only for local development hosts)."""
    parsed = urlparse(url)
    if parsed.scheme == "https" and parsed.hostname:
        return url
    if parsed.scheme == "http" and parsed.hostname in _LOCAL_HOSTS:
        return url
    raise ConfigurationError(f"Ingest URL must use https: {url!r}")


class AnalyticsClient:
    def __init__(
        self,
        api_key: str,
        *,
        ingest_url: str = DEFAULT_INGEST_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        retry_max_backoff: float = DEFAULT_RETRY_MAX_BACKOFF,
        capture_robots_txt: bool = False,
        robots_txt_max_size: int = DEFAULT_ROBOTS_TXT_MAX_SIZE,
        provider: ProviderAdapter | None = None,
        on_error: ErrorHook | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("AnalyticsClient requires an API key")
        self._api_key = api_key
        self._ingest_url = validate_ingest_url(ingest_url)
        self._retry_attempts = max(0, retry_attempts)
        self._retry_backoff = retry_backoff
        self._retry_max_backoff = retry_max_backoff
        self._capture_robots_txt = capture_robots_txt
        self._robots_txt_max_size = robots_txt_max_size
        self._provider: ProviderAdapter = provider or GenericAdapter()
        self._on_error = on_error
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> AnalyticsClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Event construction ───────────────────────────────────────────

    def build_event(
        self,
        request: Request,
        response: Response | None = None,
        *,
        started_at: float | None = None,
        request_id: str | None = None,
        session_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> IngestEvent:
        return build_event(
            request,
            response,
            started_at=started_at,
            request_id=request_id,
            session_id=session_id,
            metadata=metadata,
            provider_data=self._provider.extract(request),
            robots_txt_body=self._robots_txt_body(request, response),
        )

    def _robots_txt_body(self, request: Request, response: Response | None) -> str | None:
        """Opt-in copy of a served robots.txt, truncated to the size cap."""
        if not self._capture_robots_txt or response is None or request.url.path != "/robots.txt":
            return None
        body = getattr(response, "body", None)
        if not isinstance(body, bytes):
            return None
        return response_text(response)[: self._robots_txt_max_size]

    # ── Delivery ─────────────────────────────────────────────────────

    async def _post(self, event: IngestEvent) -> None:
        resp = await self._client.post(
            self._ingest_url,
            json=event,
            headers={"X-API-Key": self._api_key, "Content-Type": "application/json"},
        )
        if not resp.is_success:
            raise AnalyticsDeliveryError(f"Ingest returned HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError:
            return
        if isinstance(data, dict) and data.get("success") is False:
            raise AnalyticsDeliveryError(str(data.get("error") or "Ingest rejected event"), status_code=resp.status_code)

    async def send(self, event: IngestEvent) -> None:
        """Deliver *event*, retrying transient failures. Raises after the last attempt."""
        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._retry_attempts + 1),
            wait=wait_exponential_jitter(
                initial=self._retry_backoff,
                max=self._retry_max_backoff,
                jitter=self._retry_backoff * 0.25,
            ),
            retry=retry_if_exception_type((AnalyticsDeliveryError, httpx.TransportError)),
        )
        async for attempt in retrying:
            with attempt:
                await self._post(event)

    async def track(self, request: Request, response: Response | None = None, **kwargs: Any) -> None:
        """Build and send an event for this request. Never raises."""
        event: IngestEvent | None = None
        try:
            event = self.build_event(request, response, **kwargs)
            await self.send(event)
        except Exception as e:
            if self._on_error is not None:
                try:
                    self._on_error(e, event)
                except Exception:
                    logger.debug("Analytics on_error hook failed", exc_info=True)
            else:
                logger.debug("Analytics delivery failed for %s", request.url.path, exc_info=True)
