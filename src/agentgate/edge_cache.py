# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Edge response cache used for remote config bundles.

``EdgeCache`` is the interface the fetcher talks to: ``match`` / ``put``
keyed by a request-shaped key (URL + auth header), storing responses whose
freshness comes from ``Cache-Control: max-age``. Deployments behind a shared
cache provide their own implementation; ``InMemoryEdgeCache`` is the
per-process default.

NOTE: InMemoryEdgeCache is meant for a single event loop. It holds no locks.
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1024


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Synthetic cache key. The credential is stored as a digest, never raw."""

    url: str
    auth_digest: str

    @classmethod
    def for_request(cls, url: str, api_key: str) -> CacheKey:
        return cls(url=url, auth_digest=hashlib.sha256(api_key.encode()).hexdigest())


@runtime_checkable
class EdgeCache(Protocol):
    async def match(self, key: CacheKey) -> httpx.Response | None: ...

    async def put(self, key: CacheKey, response: httpx.Response) -> None: ...


def extract_max_age(response: httpx.Response) -> float | None:
    """Parse ``Cache-Control: max-age`` (seconds). None if absent or malformed."""
    cc = response.headers.get("Cache-Control", "")
    for directive in cc.split(","):
        directive = directive.strip().lower()
        if directive in ("no-store", "no-cache", "private"):
            return None
        if directive.startswith("max-age="):
            try:
                return float(directive[8:])
            except ValueError:
                return None
    return None


@dataclass(slots=True)
class _CacheEntry:
    status_code: int
    headers: list[tuple[str, str]]
    content: bytes
    stored_at: float
    ttl: float

    def is_fresh(self) -> bool:
        return (time.monotonic() - self.stored_at) < self.ttl

    def to_response(self) -> httpx.Response:
        return httpx.Response(self.status_code, headers=self.headers, content=self.content)


class InMemoryEdgeCache:
    """Bounded LRU of fresh responses keyed by CacheKey."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._entries: OrderedDict[CacheKey, _CacheEntry] = OrderedDict()
        self._max_entries = max_entries

    def __len__(self) -> int:
        return len(self._entries)

    async def match(self, key: CacheKey) -> httpx.Response | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.to_response()

    async def put(self, key: CacheKey, response: httpx.Response) -> None:
        """Store *response* for its max-age. Responses without one are not kept."""
        ttl = extract_max_age(response)
        if not ttl or ttl <= 0:
            logger.debug("Not caching %s: no max-age", key.url)
            return
        self._entries[key] = _CacheEntry(
            status_code=response.status_code,
            headers=list(response.headers.multi_items()),
            content=response.content,
            stored_at=time.monotonic(),
            ttl=ttl,
        )
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
