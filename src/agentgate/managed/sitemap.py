# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Managed ``/sitemap.xml`` (and ``/sitemap-*.xml``)."""

from __future__ import annotations

import re

from starlette.responses import Response

from agentgate import headers
from agentgate.config import ManagedFileConfig, ManagedFileMode
from agentgate.managed.merge import merge_sitemap_xml
from agentgate.managed.origin import FetchOrigin, fetch_origin_text

MEDIA_TYPE = "application/xml; charset=utf-8"

_SITEMAP_PATH_RE = re.compile(r"^/sitemap(-[\w-]+)?\.xml$")


def is_sitemap_path(path: str) -> bool:
    return _SITEMAP_PATH_RE.match(path) is not None


def _is_xml(media: str) -> bool:
    return "xml" in media


async def handle_sitemap(origin: Response, config: ManagedFileConfig, fetch_origin: FetchOrigin) -> Response:
    """Sitemap response for the configured mode.

    ``append`` is served as ``merge``: concatenating two XML documents would
    not produce a valid sitemap.
    """
    mode = config.mode
    if mode == ManagedFileMode.REPLACE:
        return Response(
            config.content or "",
            media_type=MEDIA_TYPE,
            headers={headers.MANAGED: "sitemap", headers.MODE: ManagedFileMode.REPLACE.value},
        )
    if mode in (ManagedFileMode.MERGE, ManagedFileMode.APPEND):
        origin_xml = await fetch_origin_text(fetch_origin, accept=_is_xml)
        return Response(
            merge_sitemap_xml(origin_xml, config.content or ""),
            media_type=MEDIA_TYPE,
            headers={headers.MANAGED: "sitemap", headers.MODE: ManagedFileMode.MERGE.value},
        )
    return origin
