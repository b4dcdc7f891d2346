# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Managed ``/.well-known/*`` files.

Filenames are exact keys: no case folding, no trailing-slash handling.
"""

from __future__ import annotations

from starlette.responses import PlainTextResponse, Response

from agentgate import headers
from agentgate.config import ManagedFileMode, WellKnownFile

WELL_KNOWN_PREFIX = "/.well-known/"

_CONTENT_TYPES: dict[str, str] = {
    "ai-plugin.json": "application/json",
    "llms.txt": "text/plain; charset=utf-8",
    "security.txt": "text/plain; charset=utf-8",
    "robots.txt": "text/plain; charset=utf-8",
}

_SUFFIX_CONTENT_TYPES: tuple[tuple[str, str], ...] = (
    (".json", "application/json"),
    (".txt", "text/plain; charset=utf-8"),
    (".xml", "application/xml; charset=utf-8"),
)

_FALLBACK_CONTENT_TYPE = "text/plain; charset=utf-8"


def well_known_filename(path: str) -> str | None:
    """``/.well-known/llms.txt`` → ``llms.txt``; None outside the prefix or for the bare prefix."""
    if not path.startswith(WELL_KNOWN_PREFIX):
        return None
    return path[len(WELL_KNOWN_PREFIX) :] or None


def content_type_for(filename: str) -> str:
    if filename in _CONTENT_TYPES:
        return _CONTENT_TYPES[filename]
    for suffix, content_type in _SUFFIX_CONTENT_TYPES:
        if filename.endswith(suffix):
            return content_type
    return _FALLBACK_CONTENT_TYPE


def handle_well_known(filename: str, file: WellKnownFile) -> Response:
    """Serve a configured file; disabled or empty files are a 404."""
    if file.mode == ManagedFileMode.DISABLED or not file.content:
        return PlainTextResponse("Not Found", status_code=404)
    return Response(
        file.content,
        media_type=content_type_for(filename),
        headers={headers.MANAGED: "well-known", headers.FILE: filename},
    )
