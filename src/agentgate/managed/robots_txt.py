# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Managed ``/robots.txt``."""

from __future__ import annotations

from starlette.responses import Response

from agentgate import headers
from agentgate.config import ManagedFileConfig, ManagedFileMode
from agentgate.managed.merge import append_robots_txt, merge_robots_txt
from agentgate.managed.origin import FetchOrigin, fetch_origin_text

ROBOTS_PATH = "/robots.txt"
MEDIA_TYPE = "text/plain; charset=utf-8"


def _robots_response(body: str, mode: str) -> Response:
    return Response(
        body,
        media_type=MEDIA_TYPE,
        headers={headers.MANAGED: "robots-txt", headers.MODE: mode},
    )


def _is_plain_text(media: str) -> bool:
    return media == "text/plain"


async def handle_robots_txt(origin: Response, config: ManagedFileConfig, fetch_origin: FetchOrigin) -> Response:
    """Build the robots.txt response for the configured mode.

    ``replace`` never touches the origin. ``append`` and ``merge`` read it
    through *fetch_origin*; anything else returns *origin* as is.
    """
    managed = config.content or ""
    mode = config.mode

    if mode == ManagedFileMode.REPLACE:
        return _robots_response(managed, mode)
    if mode == ManagedFileMode.APPEND:
        origin_text = await fetch_origin_text(fetch_origin, accept=_is_plain_text)
        return _robots_response(append_robots_txt(origin_text, managed), mode)
    if mode == ManagedFileMode.MERGE:
        origin_text = await fetch_origin_text(fetch_origin, accept=_is_plain_text)
        return _robots_response(merge_robots_txt(origin_text, managed), mode)
    return origin
