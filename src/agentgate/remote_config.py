# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Remote config bundle retrieval, one bundle per hostname.

Lookup goes edge cache first, then ``GET {base}/v1/sdk-config/{hostname}``.

Outcomes:
- 200  → bundle cached for ``cache_ttl`` seconds and returned
- 404  → "no config for this hostname": a JSON ``null`` sentinel is cached for
         ``cache_ttl`` so the API is not asked again until it expires
- anything else (other status, network error, invalid payload) → ``None``,
  nothing cached, so the next request tries again

The fetcher never raises. Cache failures are ignored.
"""

from __future__ import annotations

import json
import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from agentgate.config import RemoteConfigBundle
from agentgate.edge_cache import CacheKey, EdgeCache, InMemoryEdgeCache
from agentgate.errors import RemoteConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://app.agentgate.dev/api"
DEFAULT_CACHE_TTL = 300
DEFAULT_TIMEOUT = 5.0

_NO_CONFIG_BODY = b"null"


class RemoteConfigFetcher:
    """Fetch and edge-cache the remote bundle for each hostname.

    The caller owns the instance (and the httpx client passed in, if any).
    """

    def __init__(
        self,
        api_key: str,
        *,
        api_base_url: str = DEFAULT_API_BASE_URL,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        cache: EdgeCache | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self._api_base_url = api_base_url.rstrip("/")
        self._cache_ttl = cache_ttl
        self._cache: EdgeCache = cache if cache is not None else InMemoryEdgeCache()
        self._client = client
        self._timeout = timeout

    def config_url(self, hostname: str) -> str:
        return f"{self._api_base_url}/v1/sdk-config/{quote(hostname, safe='')}"

    async def fetch(self, hostname: str) -> RemoteConfigBundle | None:
        """Return the bundle for *hostname*, or None (no config / unavailable)."""
        url = self.config_url(hostname)
        key = CacheKey.for_request(url, self._api_key)

        cached = await self._cache_match(key)
        if cached is not None:
            try:
                return _parse_bundle(cached.content)
            except (ValueError, ValidationError):
                logger.debug("Discarding unreadable cached config for %s", hostname)

        try:
            body = await self._request(hostname, url)
        except RemoteConfigError as e:
            logger.warning("Remote config unavailable for %s: %s", hostname, e)
            return None

        if body is None:
            await self._cache_put(key, _NO_CONFIG_BODY)
            return None

        try:
            bundle = _parse_bundle(body)
        except (ValueError, ValidationError) as e:
            logger.warning("Remote config for %s is invalid, using defaults: %s", hostname, e)
            return None

        await self._cache_put(key, body)
        return bundle

    async def _request(self, hostname: str, url: str) -> bytes | None:
        """GET the bundle. Returns None on 404; raises RemoteConfigError otherwise."""
        headers = {"X-API-Key": self._api_key, "Accept": "application/json"}
        try:
            if self._client is not None:
                resp = await self._client.get(url, headers=headers, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise RemoteConfigError(f"request failed: {e!r}", hostname=hostname) from e

        if resp.status_code == 404:
            return None
        if not resp.is_success:
            raise RemoteConfigError(f"HTTP {resp.status_code}", hostname=hostname, status_code=resp.status_code)
        return resp.content

    async def _cache_match(self, key: CacheKey) -> httpx.Response | None:
        try:
            return await self._cache.match(key)
        except Exception:
            logger.debug("Edge cache lookup failed", exc_info=True)
            return None

    async def _cache_put(self, key: CacheKey, body: bytes) -> None:
        response = httpx.Response(
            200,
            content=body,
            headers={"Content-Type": "application/json", "Cache-Control": f"public, max-age={self._cache_ttl}"},
        )
        try:
            await self._cache.put(key, response)
        except Exception:
            logger.debug("Edge cache write failed", exc_info=True)


def _parse_bundle(body: bytes) -> RemoteConfigBundle | None:
    data = json.loads(body)
    if data is None:
        return None
    return RemoteConfigBundle.model_validate(data)
