# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import agentgate  # noqa: F401
except ImportError:
    raise ImportError("agentgate is not installed. Run: pip install -e '.[dev]'") from None

import pytest
from starlette.requests import Request

from agentgate.logging_config import clear_request


def _scope(
    path: str = "/",
    *,
    headers: dict[str, str] | None = None,
    host: str = "example.com",
    query: str = "",
    state: dict | None = None,
    method: str = "GET",
    client: tuple[str, int] | None = ("203.0.113.7", 51000),
) -> dict:
    """Build a minimal HTTP scope for https://{host}{path}."""
    raw_headers = [(b"host", host.encode("latin-1"))]
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    return {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "https",
        "server": (host, 443),
        "client": client,
        "root_path": "",
        "path": path,
        "raw_path": path.encode(),
        "query_string": query.encode(),
        "headers": raw_headers,
        "state": state if state is not None else {},
    }


@pytest.fixture
def make_scope():
    return _scope


@pytest.fixture
def make_request():
    """Factory: ``make_request("/path", headers={...}, state={...})`` → Request."""

    def _make(path: str = "/", **kwargs) -> Request:
        return Request(_scope(path, **kwargs))

    return _make


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Request-scoped structlog context must not leak between tests."""
    yield
    clear_request()
