# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Materialized responses.

The origin app streams ASGI messages once. Every stage that inspects a body
and passes it on needs a readable copy, so the origin output is buffered into
a Starlette ``Response`` with a plain ``bytes`` body and every rewrite builds a
fresh ``Response`` from it. Repeated headers (``Set-Cookie``) survive and
``Content-Length`` is recomputed.
"""

from __future__ import annotations

import codecs
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from starlette.responses import Response

_CHARSET_RE = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)
_RECOMPUTED = frozenset({b"content-length", b"transfer-encoding"})

RawHeaders = list[tuple[bytes, bytes]]


def build_response(body: bytes, status_code: int, raw_headers: Iterable[tuple[bytes, bytes]]) -> Response:
    """Response carrying *body* and the given raw headers, length recomputed.

    An empty body keeps the headers untouched (HEAD responses report the
    length of the body they omit).
    """
    raw_headers = list(raw_headers)
    response = Response(content=body, status_code=status_code)
    if not body:
        response.raw_headers = raw_headers
        return response
    computed = [h for h in response.raw_headers if h[0] == b"content-length"]
    response.raw_headers = [h for h in raw_headers if h[0].lower() not in _RECOMPUTED] + computed
    return response


async def capture_response(app: Callable[..., Any], scope: dict, receive: Callable) -> Response:
    """Run *app* and buffer everything it sends."""
    status = 500
    raw_headers: RawHeaders = []
    chunks: list[bytes] = []

    async def capture_send(message: dict) -> None:
        nonlocal status, raw_headers
        if message["type"] == "http.response.start":
            status = message["status"]
            raw_headers = list(message.get("headers", []))
        elif message["type"] == "http.response.body":
            chunks.append(message.get("body", b""))

    await app(scope, receive, capture_send)
    return build_response(b"".join(chunks), status, raw_headers)


def clone_response(response: Response) -> Response:
    return build_response(response.body, response.status_code, response.raw_headers)


def media_type(response: Response) -> str:
    """Lower-cased media type without parameters (``text/html``)."""
    return response.headers.get("content-type", "").split(";", 1)[0].strip().lower()


def is_encoded(response: Response) -> bool:
    """True when the body carries a ``Content-Encoding`` other than identity."""
    encoding = response.headers.get("content-encoding", "").strip().lower()
    return encoding not in ("", "identity")


def response_charset(response: Response) -> str:
    m = _CHARSET_RE.search(response.headers.get("content-type", ""))
    if not m:
        return "utf-8"
    try:
        return codecs.lookup(m.group(1)).name
    except LookupError:
        return "utf-8"


def response_text(response: Response) -> str:
    return response.body.decode(response_charset(response), errors="replace")


def rebuild_response(
    response: Response,
    body: str | bytes,
    *,
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Fresh copy of *response* with a new body and extra/overridden headers."""
    if isinstance(body, str):
        body = body.encode(response_charset(response), errors="xmlcharrefreplace")
    rebuilt = build_response(body, response.status_code, response.raw_headers)
    for name, value in (headers or {}).items():
        rebuilt.headers[name] = value
    return rebuilt
